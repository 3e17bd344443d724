"""
Conversion between polygon inputs and geometry values.

Accepted polygon inputs, all with coordinates in [lon, lat] order:
- a raw ring: a sequence of [lon, lat] pairs
- a GeoJSON Polygon or MultiPolygon geometry
- a GeoJSON Feature wrapping one of the above
- a GeoJSON FeatureCollection (only the first feature is used)
- Polygon / MultiPolygon values
"""

from typing import Any, Dict, List, Mapping, Sequence

from .errors import InvalidPolygon
from .geometry import MultiPolygon, Polygon, Ring, Shape, parts


def _polygon(rings: Sequence[Sequence[Sequence[float]]]) -> Polygon:
    try:
        return Polygon(tuple(tuple(ring) for ring in rings))
    except (TypeError, ValueError, IndexError) as e:
        raise InvalidPolygon(f"Failed to build a polygon: {e}") from e


def shape_from_geojson(geometry: Mapping[str, Any]) -> Shape:
    """
    Parse a GeoJSON Polygon or MultiPolygon geometry.

    Returns:
        Polygon or MultiPolygon
    """
    kind = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if coordinates is None:
        raise InvalidPolygon(f"GeoJSON geometry has no coordinates: {kind!r}")

    if kind == "Polygon":
        return _polygon(coordinates)
    if kind == "MultiPolygon":
        return MultiPolygon(tuple(_polygon(rings) for rings in coordinates))

    raise InvalidPolygon(f"Unsupported GeoJSON geometry type: {kind!r}")


def to_polygons(shape: Any) -> List[Polygon]:
    """
    Normalise any accepted polygon input into simple polygons.

    MultiPolygons are split into their parts so that each can be
    processed independently.

    Args:
        shape: Polygon input (see module docstring)

    Returns:
        List of Polygon values (empty for an empty FeatureCollection)
    """
    if isinstance(shape, (Polygon, MultiPolygon)):
        return list(parts(shape))

    if isinstance(shape, Mapping):
        kind = shape.get("type")
        if kind == "FeatureCollection" or "features" in shape:
            features = shape.get("features") or []
            if not features:
                return []
            return to_polygons(features[0])
        if kind == "Feature" or "geometry" in shape:
            geometry = shape.get("geometry")
            if not geometry:
                raise InvalidPolygon("GeoJSON feature has no geometry")
            return to_polygons(geometry)
        return list(parts(shape_from_geojson(shape)))

    if isinstance(shape, Sequence) and not isinstance(shape, (str, bytes)):
        return [_polygon([shape])]

    raise InvalidPolygon(f"Unsupported polygon input: {type(shape).__name__}")


def _closed(ring: Ring) -> List[List[float]]:
    coords = [[x, y] for x, y in ring]
    coords.append(list(coords[0]))
    return coords


def to_geojson(shape: Shape) -> Dict[str, Any]:
    """Render a Polygon or MultiPolygon as a GeoJSON geometry with closed rings."""
    if isinstance(shape, MultiPolygon):
        return {
            "type": "MultiPolygon",
            "coordinates": [[_closed(ring) for ring in p.rings] for p in shape.polygons],
        }
    return {
        "type": "Polygon",
        "coordinates": [_closed(ring) for ring in shape.rings],
    }


def _wkt_rings(polygon: Polygon) -> str:
    rings = []
    for ring in polygon.rings:
        coords = ", ".join(f"{x!r} {y!r}" for x, y in _closed(ring))
        rings.append(f"({coords})")
    return "(" + ", ".join(rings) + ")"


def to_wkt(shape: Shape) -> str:
    """Render a Polygon or MultiPolygon as well-known text."""
    if isinstance(shape, MultiPolygon):
        return "MULTIPOLYGON (" + ", ".join(_wkt_rings(p) for p in shape.polygons) + ")"
    return "POLYGON " + _wkt_rings(shape)
