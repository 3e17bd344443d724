"""
Quad-tree cell structures for location ids.

This module defines the coordinate and bounding-box values used by the
cell codec, the compass directions used for adjacency, and the fixed
lookup tables that map a cell's last character to its neighbour.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .alphabet import BASE32
from .errors import InvalidDirection
from .geometry import Polygon


@dataclass(frozen=True)
class LatLon:
    """A WGS84 point in degrees."""
    lat: float
    lon: float


@dataclass(frozen=True)
class BoundingBox:
    """
    South-west / north-east corners of a cell.

    The elevation of the location id the box was computed from is carried
    along so that callers can round-trip it.
    """
    sw: LatLon
    ne: LatLon
    elevation: int = 0
    elevation_type: str = "floor"

    def __post_init__(self):
        if self.sw.lat > self.ne.lat or self.sw.lon > self.ne.lon:
            raise ValueError(
                f"Invalid bounding box: sw={self.sw}, ne={self.ne}"
            )

    @property
    def width(self) -> float:
        """Longitude extent in degrees."""
        return self.ne.lon - self.sw.lon

    @property
    def height(self) -> float:
        """Latitude extent in degrees."""
        return self.ne.lat - self.sw.lat

    @property
    def center(self) -> LatLon:
        """Unrounded centre of the box."""
        return LatLon(
            (self.sw.lat + self.ne.lat) / 2,
            (self.sw.lon + self.ne.lon) / 2,
        )

    def contains(self, lat: float, lon: float) -> bool:
        """Check if (lat, lon) lies within the box, edges included."""
        return self.sw.lat <= lat <= self.ne.lat and self.sw.lon <= lon <= self.ne.lon

    def to_polygon(self) -> Polygon:
        """
        Rectangle polygon of the box in (lon, lat) order.

        Vertices run counter-clockwise from the south-west corner.
        """
        w, s, e, n = self.sw.lon, self.sw.lat, self.ne.lon, self.ne.lat
        return Polygon(((
            (w, s),
            (e, s),
            (e, n),
            (w, n),
        ),))


class Direction(str, Enum):
    """Compass direction for adjacency lookups."""
    N = "n"
    S = "s"
    E = "e"
    W = "w"

    @classmethod
    def parse(cls, value) -> Direction:
        """Accept a Direction or a case-insensitive one-letter string."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidDirection(f"Invalid direction: {value!r}") from None


# Neighbour character tables, indexed by [direction][len(location_id) % 2].
# The neighbour of last character c is BASE32[table.index(c)].
NEIGHBOUR: Dict[Direction, Tuple[str, str]] = {
    Direction.N: ("p0r21436x8zb9dcf5h7kjnmqesgutwvy", "bc01fg45238967deuvhjyznpkmstqrwx"),
    Direction.S: ("14365h7k9dcfesgujnmqp0r2twvyx8zb", "238967debc01fg45kmstqrwxuvhjyznp"),
    Direction.E: ("bc01fg45238967deuvhjyznpkmstqrwx", "p0r21436x8zb9dcf5h7kjnmqesgutwvy"),
    Direction.W: ("238967debc01fg45kmstqrwxuvhjyznp", "14365h7k9dcfesgujnmqp0r2twvyx8zb"),
}

# Last characters whose neighbour lies under a different parent cell
BORDER: Dict[Direction, Tuple[str, str]] = {
    Direction.N: ("prxz", "bcfguvyz"),
    Direction.S: ("028b", "0145hjnp"),
    Direction.E: ("bcfguvyz", "prxz"),
    Direction.W: ("0145hjnp", "028b"),
}


def neighbour_char(direction: Direction, parity: int, char: str) -> str:
    """Map the last character of a cell to the last character of its neighbour."""
    return BASE32[NEIGHBOUR[direction][parity].index(char)]


def is_border_char(direction: Direction, parity: int, char: str) -> bool:
    """True if moving in direction from char crosses into another parent cell."""
    return char in BORDER[direction][parity]


def parent(location_id: str) -> str:
    """Cell one level up (the empty string for first-level cells)."""
    return location_id[:-1]


def children(location_id: str) -> List[str]:
    """The 32 sub-cells of a cell, in alphabet order."""
    return [location_id + char for char in BASE32]
