"""
unl-core: Location ids, adjacency and polygon clusters on a base-32 grid.

This package encodes WGS84 coordinates into hierarchical location ids,
decodes them back to cells, walks to neighbouring cells, covers polygons
with mixed-precision cell clusters and packs cell lists into compact
polyhash strings.
"""

__version__ = "0.1.0"

from .errors import (
    UnlCoreError,
    InvalidCoordinate,
    InvalidCellId,
    InvalidDirection,
    PrecisionOutOfRange,
    InvalidPolygon,
    MalformedPolyhash,
)
from .quadtree import LatLon, BoundingBox, Direction
from .codec import (
    encode,
    decode,
    bounds,
    adjacent,
    neighbours,
    grid_lines,
    exclude_elevation,
    append_elevation,
    is_location_id,
)
from .geometry import Polygon, MultiPolygon, GeometryEngine, PlanarGeometry
from .polyhash import PolyhashBlock, deflate, inflate, to_polyhash, to_coordinates
from .serialize import compress, decompress
from .cluster import ClusterBuilder, ClusterConfig, build_cluster, to_cluster
from .config import Settings, get_settings
from .log import configure_logging

__all__ = [
    "UnlCoreError",
    "InvalidCoordinate",
    "InvalidCellId",
    "InvalidDirection",
    "PrecisionOutOfRange",
    "InvalidPolygon",
    "MalformedPolyhash",
    "LatLon",
    "BoundingBox",
    "Direction",
    "encode",
    "decode",
    "bounds",
    "adjacent",
    "neighbours",
    "grid_lines",
    "exclude_elevation",
    "append_elevation",
    "is_location_id",
    "Polygon",
    "MultiPolygon",
    "GeometryEngine",
    "PlanarGeometry",
    "PolyhashBlock",
    "deflate",
    "inflate",
    "to_polyhash",
    "to_coordinates",
    "compress",
    "decompress",
    "ClusterBuilder",
    "ClusterConfig",
    "build_cluster",
    "to_cluster",
    "Settings",
    "get_settings",
    "configure_logging",
]
