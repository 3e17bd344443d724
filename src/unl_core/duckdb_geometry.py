"""
DuckDB-based geometry engine using the spatial extension.

This module implements GeometryEngine on top of DuckDB's spatial
functions (ST_Disjoint, ST_ContainsProperly, ST_Intersection), for
callers that prefer a full polygon-clipping engine over the planar
reference primitives.
"""

import json
from typing import Optional

import duckdb
import structlog

from .config import get_settings
from .geojson import shape_from_geojson, to_wkt
from .geometry import GeometryEngine, MultiPolygon, PlanarGeometry, Polygon, Shape

logger = structlog.get_logger(__name__)

# ST_CollectionExtract type code for polygons
POLYGON_TYPE = 3


class DuckDBGeometry(GeometryEngine):
    """
    GeometryEngine answering predicates with DuckDB spatial SQL.

    Shapes are passed to DuckDB as WKT; intersections come back as GeoJSON
    and are parsed into Polygon / MultiPolygon values.
    """

    def __init__(self, database: str = ":memory:"):
        """
        Initialize the DuckDB connection and load the spatial extension.

        Args:
            database: DuckDB database path (in-memory by default)
        """
        self._con = duckdb.connect(database)
        try:
            self._con.install_extension("spatial")
            self._con.load_extension("spatial")
        except duckdb.Error:
            self.close()
            raise
        logger.debug("duckdb_geometry_ready", database=database)

    def _scalar(self, query: str, shape: Shape, cell: Polygon):
        if self._con is None:
            raise RuntimeError("DuckDBGeometry connection is closed")
        row = self._con.execute(query, [to_wkt(shape), to_wkt(cell)]).fetchone()
        return row[0] if row else None

    def disjoint(self, shape: Shape, cell: Polygon) -> bool:
        return bool(self._scalar(
            "SELECT ST_Disjoint(ST_GeomFromText(?), ST_GeomFromText(?))",
            shape,
            cell,
        ))

    def contains(self, outer: Shape, inner: Polygon) -> bool:
        # Boundary contact is not containment
        return bool(self._scalar(
            "SELECT ST_ContainsProperly(ST_GeomFromText(?), ST_GeomFromText(?))",
            outer,
            inner,
        ))

    def intersect(self, shape: Shape, cell: Polygon) -> Optional[Shape]:
        result = self._scalar(
            f"""
            SELECT CASE WHEN ST_IsEmpty(g) OR ST_Area(g) = 0 THEN NULL ELSE ST_AsGeoJSON(g) END
            FROM (
                SELECT ST_CollectionExtract(
                    ST_Intersection(ST_GeomFromText(?), ST_GeomFromText(?)),
                    {POLYGON_TYPE}
                ) AS g
            )
            """,
            shape,
            cell,
        )
        if result is None:
            return None

        geometry = json.loads(result) if isinstance(result, str) else result
        intersection = shape_from_geojson(geometry)
        if isinstance(intersection, MultiPolygon) and not intersection.polygons:
            return None
        return intersection

    def close(self) -> None:
        """Close the database connection."""
        if getattr(self, "_con", None):
            self._con.close()
            self._con = None

    def __del__(self):
        """Cleanup on garbage collection."""
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_geometry_engine(name: Optional[str] = None) -> GeometryEngine:
    """
    Create a geometry engine by name.

    Args:
        name: "planar" or "duckdb"; defaults to the UNL_CORE_GEOMETRY setting

    Returns:
        Configured GeometryEngine instance
    """
    if name is None:
        name = get_settings().geometry

    if name == "planar":
        return PlanarGeometry()
    if name == "duckdb":
        return DuckDBGeometry()

    raise ValueError(f"Unknown geometry engine {name!r}, expected 'planar' or 'duckdb'")
