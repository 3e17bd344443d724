"""
Planar polygon geometry used by cluster decomposition.

Coordinates are (x, y) pairs, x being longitude and y latitude. Polygons
are stored as a tuple of open rings (no closing duplicate vertex): the
exterior ring first, then any holes.

The cluster algorithm only needs three predicates, declared by the
GeometryEngine interface: disjoint, contains and intersect. PlanarGeometry
implements them with the reference primitives in this module; other
engines (see duckdb_geometry) can be swapped in.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

Coordinate = Tuple[float, float]
Ring = Tuple[Coordinate, ...]
BBox = Tuple[float, float, float, float]


def _normalize_ring(coords: Sequence[Sequence[float]]) -> Ring:
    ring = tuple((float(c[0]), float(c[1])) for c in coords)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    return ring


@dataclass(frozen=True)
class Polygon:
    """
    A polygon with optional holes.

    rings[0] is the exterior, rings[1:] are holes. Rings are stored open;
    a closing vertex equal to the first one is dropped on construction.
    """
    rings: Tuple[Ring, ...]

    def __post_init__(self):
        rings = tuple(_normalize_ring(ring) for ring in self.rings)
        if not rings:
            raise ValueError("Polygon needs at least an exterior ring")
        for ring in rings:
            if len(ring) < 3:
                raise ValueError(f"Polygon ring needs at least 3 vertices, got {len(ring)}")
        object.__setattr__(self, "rings", rings)

    @property
    def exterior(self) -> Ring:
        return self.rings[0]

    @property
    def holes(self) -> Tuple[Ring, ...]:
        return self.rings[1:]

    @property
    def bbox(self) -> BBox:
        """(min_x, max_x, min_y, max_y) of the exterior ring."""
        return bounding_box(self.exterior)

    def vertices(self) -> Iterator[Coordinate]:
        for ring in self.rings:
            yield from ring


@dataclass(frozen=True)
class MultiPolygon:
    """A collection of polygons treated as one shape."""
    polygons: Tuple[Polygon, ...]

    def __post_init__(self):
        object.__setattr__(self, "polygons", tuple(self.polygons))

    def vertices(self) -> Iterator[Coordinate]:
        for polygon in self.polygons:
            yield from polygon.vertices()


Shape = Union[Polygon, MultiPolygon]


def parts(shape: Shape) -> Tuple[Polygon, ...]:
    """The polygons making up a shape."""
    if isinstance(shape, MultiPolygon):
        return shape.polygons
    return (shape,)


def coord_all(shape: Shape) -> List[Coordinate]:
    """Every vertex of every ring of a shape."""
    return list(shape.vertices())


def ring_edges(ring: Ring) -> Iterator[Tuple[Coordinate, Coordinate]]:
    """Edges of a ring, including the closing edge."""
    count = len(ring)
    for i in range(count):
        yield ring[i], ring[(i + 1) % count]


def cross(origin: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """Z component of (a - origin) x (b - origin); positive when b is left of origin->a."""
    return (a[0] - origin[0]) * (b[1] - origin[1]) - (a[1] - origin[1]) * (b[0] - origin[0])


def ring_area(ring: Ring) -> float:
    """Signed area (shoelace formula); positive for counter-clockwise rings."""
    if not ring:
        return 0.0
    # Relative to the first vertex so small cells keep their precision
    origin = ring[0]
    area = 0.0
    for a, b in ring_edges(ring):
        area += cross(origin, a, b)
    return area / 2


def bounding_box(ring: Sequence[Coordinate]) -> BBox:
    """
    Bounding box of a ring.

    Returns:
        Tuple of (min_x, max_x, min_y, max_y)
    """
    xs = [pt[0] for pt in ring]
    ys = [pt[1] for pt in ring]
    return min(xs), max(xs), min(ys), max(ys)


def bounding_box_overlap(a: BBox, b: BBox) -> bool:
    """Check if two (min_x, max_x, min_y, max_y) boxes share any point."""
    return a[0] <= b[1] and b[0] <= a[1] and a[2] <= b[3] and b[2] <= a[3]


def _bbox_within(inner: BBox, outer: BBox) -> bool:
    return (
        outer[0] <= inner[0] and inner[1] <= outer[1]
        and outer[2] <= inner[2] and inner[3] <= outer[3]
    )


def segments_intersect(
    a1: Coordinate,
    a2: Coordinate,
    b1: Coordinate,
    b2: Coordinate,
) -> bool:
    """
    Check if segment a1-a2 intersects segment b1-b2.

    Uses the side of each segment the other segment's endpoints fall on.
    Touching endpoints count as an intersection; parallel and collinear
    segments never intersect.
    """
    d1 = cross(a1, a2, b1)
    d2 = cross(a1, a2, b2)
    if (d1 > 0 and d2 > 0) or (d1 < 0 and d2 < 0):
        return False

    d1 = cross(b1, b2, a1)
    d2 = cross(b1, b2, a2)
    if (d1 > 0 and d2 > 0) or (d1 < 0 and d2 < 0):
        return False

    # Parallel or collinear
    if (a2[0] - a1[0]) * (b2[1] - b1[1]) - (a2[1] - a1[1]) * (b2[0] - b1[0]) == 0:
        return False

    return True


def _point_in_ring(point: Coordinate, ring: Ring) -> bool:
    min_x, max_x, min_y, max_y = bounding_box(ring)
    x, y = point
    if x < min_x or x > max_x or y < min_y or y > max_y:
        return False

    # Ray from one unit outside the bounding box to the point
    outside = (min_x - 1.0, y)

    crossings = 0
    for start, end in ring_edges(ring):
        # Only edges straddling the ray's line; a vertex on the ray is
        # counted for exactly one of its two edges
        if (start[1] > y) == (end[1] > y):
            continue
        if segments_intersect(outside, point, start, end):
            crossings += 1

    return (crossings & 1) == 1


def point_in_polygon(point: Coordinate, polygon: Union[Polygon, Sequence[Coordinate]]) -> bool:
    """
    Ray-casting point-in-polygon test.

    Args:
        point: (x, y) coordinate
        polygon: A Polygon (holes are excluded) or a bare ring

    Returns:
        True if the crossing count of the exterior is odd and the point is
        not inside a hole
    """
    if not isinstance(polygon, Polygon):
        return _point_in_ring(point, _normalize_ring(polygon))

    if not _point_in_ring(point, polygon.exterior):
        return False
    return not any(_point_in_ring(point, hole) for hole in polygon.holes)


def _boundaries_cross(a: Polygon, b: Polygon) -> bool:
    for ring_a in a.rings:
        for ring_b in b.rings:
            if not bounding_box_overlap(bounding_box(ring_a), bounding_box(ring_b)):
                continue
            for a1, a2 in ring_edges(ring_a):
                for b1, b2 in ring_edges(ring_b):
                    if segments_intersect(a1, a2, b1, b2):
                        return True
    return False


def polygons_disjoint(a: Polygon, b: Polygon) -> bool:
    """
    Check if two polygons share no point.

    Polygons touching at a vertex or crossing edges are not disjoint.
    """
    if not bounding_box_overlap(a.bbox, b.bbox):
        return True
    if _boundaries_cross(a, b):
        return False
    if any(point_in_polygon(v, b) for v in a.exterior):
        return False
    if any(point_in_polygon(v, a) for v in b.exterior):
        return False
    return True


def polygons_overlap(a: Polygon, b: Polygon) -> bool:
    """True if any vertex of one polygon lies inside the other."""
    return (
        any(point_in_polygon(v, b) for v in a.exterior)
        or any(point_in_polygon(v, a) for v in b.exterior)
    )


def polygon_contains(outer: Polygon, inner: Polygon) -> bool:
    """
    Check if inner lies strictly inside outer.

    Every vertex of inner must be inside outer, the boundaries must not
    touch, and no hole of outer may lie inside inner.
    """
    if not _bbox_within(inner.bbox, outer.bbox):
        return False
    if not all(point_in_polygon(v, outer) for v in inner.exterior):
        return False
    if _boundaries_cross(outer, inner):
        return False
    for hole in outer.holes:
        if any(point_in_polygon(v, inner) for v in hole):
            return False
    return True


def _clip_ring(ring: Ring, clip: Ring) -> List[Coordinate]:
    """Sutherland-Hodgman clipping of ring against a counter-clockwise convex ring."""
    output: List[Coordinate] = list(ring)

    for c1, c2 in ring_edges(clip):
        if not output:
            break
        points = output
        output = []

        def inside(p: Coordinate) -> bool:
            return cross(c1, c2, p) >= 0

        def crossing(p: Coordinate, q: Coordinate) -> Coordinate:
            dx, dy = q[0] - p[0], q[1] - p[1]
            ex, ey = c2[0] - c1[0], c2[1] - c1[1]
            t = (ex * (p[1] - c1[1]) - ey * (p[0] - c1[0])) / (ey * dx - ex * dy)
            return p[0] + t * dx, p[1] + t * dy

        previous = points[-1]
        for current in points:
            if inside(current):
                if not inside(previous):
                    output.append(crossing(previous, current))
                output.append(current)
            elif inside(previous):
                output.append(crossing(previous, current))
            previous = current

    # Drop consecutive duplicates produced at clip corners
    cleaned: List[Coordinate] = []
    for point in output:
        if not cleaned or cleaned[-1] != point:
            cleaned.append(point)
    if len(cleaned) > 1 and cleaned[0] == cleaned[-1]:
        cleaned.pop()
    return cleaned


def polygon_intersection(subject: Polygon, clip: Polygon) -> Optional[Polygon]:
    """
    Intersection of a polygon with a convex polygon.

    Args:
        subject: Polygon to clip (may be concave and have holes)
        clip: Convex polygon, e.g. a cell rectangle; its holes are ignored

    Returns:
        The clipped Polygon, or None if the intersection has no area
    """
    clip_ring = clip.exterior
    if ring_area(clip_ring) < 0:
        clip_ring = tuple(reversed(clip_ring))

    if not bounding_box_overlap(subject.bbox, bounding_box(clip_ring)):
        return None

    exterior = _clip_ring(subject.exterior, clip_ring)
    if len(exterior) < 3 or ring_area(tuple(exterior)) == 0:
        return None

    rings = [tuple(exterior)]
    for hole in subject.holes:
        clipped = _clip_ring(hole, clip_ring)
        if len(clipped) >= 3 and ring_area(tuple(clipped)) != 0:
            rings.append(tuple(clipped))

    return Polygon(tuple(rings))


class GeometryEngine(ABC):
    """
    Polygon predicates consumed by cluster decomposition.

    shape arguments may be a Polygon or a MultiPolygon; cell arguments are
    the rectangle polygons of location id cells.
    """

    @abstractmethod
    def disjoint(self, shape: Shape, cell: Polygon) -> bool:
        """True if shape and cell share no point."""
        pass

    @abstractmethod
    def contains(self, outer: Shape, inner: Polygon) -> bool:
        """True if inner lies inside outer without boundary contact."""
        pass

    @abstractmethod
    def intersect(self, shape: Shape, cell: Polygon) -> Optional[Shape]:
        """Clipped intersection of shape and cell, None if empty."""
        pass


class PlanarGeometry(GeometryEngine):
    """GeometryEngine built on the ray-casting and clipping primitives above."""

    def disjoint(self, shape: Shape, cell: Polygon) -> bool:
        return all(polygons_disjoint(part, cell) for part in parts(shape))

    def contains(self, outer: Shape, inner: Polygon) -> bool:
        return any(polygon_contains(part, inner) for part in parts(outer))

    def intersect(self, shape: Shape, cell: Polygon) -> Optional[Shape]:
        pieces = []
        for part in parts(shape):
            clipped = polygon_intersection(part, cell)
            if clipped is not None:
                pieces.append(clipped)

        if not pieces:
            return None
        if len(pieces) == 1:
            return pieces[0]
        return MultiPolygon(tuple(pieces))
