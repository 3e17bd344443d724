"""
Polygon to location id cluster decomposition.

This module covers a polygon with a set of location id cells of mixed
precision. The builder runs a breadth-first search over the cell
quad-tree: cells disjoint from the polygon are pruned, cells inside the
polygon (or at the target precision) are kept, and the rest are refined
into their 32 sub-cells together with the part of the polygon that falls
inside them.
"""

from collections import deque
from dataclasses import dataclass
from os.path import commonprefix
from typing import Any, Deque, List, Optional, Set, Tuple

import structlog

from .alphabet import BASE32
from .codec import bounds, clamp_coords, encode, validate_precision
from .duckdb_geometry import create_geometry_engine
from .geojson import to_polygons
from .geometry import GeometryEngine, Polygon, Shape, coord_all
from .polyhash import PolyhashBlock, deflate

logger = structlog.get_logger(__name__)


@dataclass
class ClusterConfig:
    """Configuration for the cluster builder."""

    precision: int
    """Target location id precision; cells are never refined past it."""

    def __post_init__(self):
        validate_precision(self.precision)


@dataclass
class ClusterStats:
    """Statistics collected during cluster decomposition."""

    cells_tested: int = 0
    cells_pruned: int = 0
    cells_accepted: int = 0
    cells_refined: int = 0
    empty_intersections: int = 0
    exhausted_refinements: int = 0
    max_precision_reached: int = 0


class ClusterBuilder:
    """
    Builder for location id clusters using breadth-first refinement.

    For each candidate cell the builder:
    1. Prunes it if it is disjoint from the (clipped) polygon
    2. Keeps it if it is at the target precision or inside the polygon
    3. Otherwise clips the polygon to the cell, jumps to the smallest cell
       enclosing the clipped part, and queues that cell's 32 sub-cells
    """

    def __init__(self, config: ClusterConfig, geometry: Optional[GeometryEngine] = None):
        """
        Initialize the builder.

        Args:
            config: Builder configuration
            geometry: Geometry engine for polygon predicates; defaults to the
                engine named by UNL_CORE_GEOMETRY
        """
        self.config = config
        self.geometry = geometry or create_geometry_engine()
        self.stats = ClusterStats()

    def build(self, shape: Any) -> List[str]:
        """
        Build the cluster covering a polygon input.

        Args:
            shape: Ring, GeoJSON geometry/Feature/FeatureCollection, or Polygon

        Returns:
            Location ids sorted by length, then alphabetically
        """
        self.stats = ClusterStats()  # Reset stats
        polygons = to_polygons(shape)

        cells: Set[str] = set()
        for polygon in polygons:
            cells.update(self._build_polygon(polygon))

        result = sorted(cells, key=lambda cell: (len(cell), cell))
        logger.debug(
            "cluster_built",
            polygons=len(polygons),
            precision=self.config.precision,
            cells=len(result),
            tested=self.stats.cells_tested,
            pruned=self.stats.cells_pruned,
        )
        return result

    def _enclosing_cell(self, intersection: Shape) -> str:
        """Longest common prefix of the intersection's vertices at target precision."""
        precision = self.config.precision
        # Clipped vertices can drift past +-180 / +-90 by rounding
        location_ids = sorted({
            encode(*clamp_coords(y, x), precision) for x, y in coord_all(intersection)
        })
        return commonprefix([location_ids[0], location_ids[-1]])

    def _build_polygon(self, polygon: Polygon) -> List[str]:
        precision = self.config.precision
        accepted: List[str] = []

        queue: Deque[Tuple[str, Shape]] = deque((char, polygon) for char in BASE32)

        while queue:
            cell, test_shape = queue.popleft()
            self.stats.cells_tested += 1
            self.stats.max_precision_reached = max(self.stats.max_precision_reached, len(cell))

            cell_polygon = bounds(cell).to_polygon()

            if self.geometry.disjoint(test_shape, cell_polygon):
                self.stats.cells_pruned += 1
                continue

            # Inside the polygon or at full precision: no need to search sub-cells
            if len(cell) == precision or self.geometry.contains(polygon, cell_polygon):
                self.stats.cells_accepted += 1
                accepted.append(cell)
                continue

            intersection = self.geometry.intersect(test_shape, cell_polygon)
            if intersection is None:
                self.stats.empty_intersections += 1
                continue

            enclosing = self._enclosing_cell(intersection)
            if len(enclosing) > len(cell) and enclosing.startswith(cell):
                target = enclosing
            else:
                target = cell

            if len(target) == precision:
                self.stats.exhausted_refinements += 1
                continue

            self.stats.cells_refined += 1
            queue.extend((target + char, intersection) for char in BASE32)

        return accepted


def build_cluster(
    shape: Any,
    precision: int,
    geometry: Optional[GeometryEngine] = None,
) -> Tuple[List[str], ClusterStats]:
    """
    Convenience function to build a cluster.

    Args:
        shape: Polygon input (see geojson.to_polygons)
        precision: Target location id precision (1..16)
        geometry: Optional geometry engine

    Returns:
        Tuple of (sorted location ids, ClusterStats)
    """
    config = ClusterConfig(precision=precision)
    builder = ClusterBuilder(config, geometry)
    cells = builder.build(shape)
    return cells, builder.stats


def to_cluster(
    shape: Any,
    precision: int,
    geometry: Optional[GeometryEngine] = None,
) -> List[PolyhashBlock]:
    """
    Cover a polygon with location ids and return them as a polyhash.

    Raises:
        PrecisionOutOfRange: If precision is outside 1..16, before any work
    """
    cells, _ = build_cluster(shape, precision, geometry)
    return deflate(cells)
