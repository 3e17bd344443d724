"""
Cell codec for converting between WGS84 coordinates and location ids.

A location id is built by repeatedly bisecting the world
([-90, 90] x [-180, 180]), alternating longitude then latitude. Each
bisection emits a 1 bit when the point lies in the upper half and a 0 bit
otherwise; every 5 bits form one base-32 character.

Location ids may carry an elevation suffix:
- "<id>@<n>" for a floor number (elevation type "floor", the default)
- "<id>#<n>" for a height in centimetres (elevation type "heightincm")
An elevation of 0 is never written.
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple, Union

from .alphabet import (
    BASE32,
    BITS_PER_CHAR,
    DEFAULT_PRECISION,
    MAX_PRECISION,
    MIN_PRECISION,
    char_value,
    validate_location_id,
)
from .errors import InvalidCellId, InvalidCoordinate, PrecisionOutOfRange
from .quadtree import (
    BoundingBox,
    Direction,
    LatLon,
    is_border_char,
    neighbour_char,
    parent,
)

ELEVATION_FLOOR = "floor"
ELEVATION_HEIGHT_CM = "heightincm"
ELEVATION_TYPES = (ELEVATION_FLOOR, ELEVATION_HEIGHT_CM)

LOCATION_ID_PATTERN = re.compile(
    r"^[%s]{%d,%d}([@#]-?\d+)?$" % (BASE32, MIN_PRECISION, MAX_PRECISION),
    re.IGNORECASE,
)

Line = Tuple[Tuple[float, float], Tuple[float, float]]


@dataclass(frozen=True)
class ElevatedLocationId:
    """A bare location id and the elevation split off from it."""
    location_id: str
    elevation: int = 0
    elevation_type: str = ELEVATION_FLOOR


@dataclass(frozen=True)
class DecodedLocation:
    """Rounded cell centre, elevation and bounds of a location id."""
    lat: float
    lon: float
    elevation: int
    elevation_type: str
    bounds: BoundingBox


def clamp_coords(lat: float, lon: float) -> Tuple[float, float]:
    """
    Clamp latitude and longitude to valid WGS84 ranges.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        Tuple of (clamped_lat, clamped_lon)
    """
    clamped_lat = max(-90.0, min(90.0, lat))
    clamped_lon = max(-180.0, min(180.0, lon))
    return clamped_lat, clamped_lon


def validate_coords(lat, lon) -> Tuple[float, float]:
    """
    Check that latitude and longitude are finite and in range.

    Args:
        lat: Latitude in degrees [-90, 90]
        lon: Longitude in degrees [-180, 180]

    Returns:
        Tuple of (lat, lon) as floats
    """
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"Invalid coordinates: lat={lat!r}, lon={lon!r}") from None

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidCoordinate(f"Invalid coordinates: lat={lat}, lon={lon}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise InvalidCoordinate(f"Coordinates out of range: lat={lat}, lon={lon}")

    return lat, lon


def validate_precision(precision: int) -> int:
    """Check that a precision is a whole number of characters in [1, 16]."""
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise PrecisionOutOfRange(f"Precision must be an integer, got {precision!r}")
    if not MIN_PRECISION <= precision <= MAX_PRECISION:
        raise PrecisionOutOfRange(
            f"Invalid location id precision {precision}. "
            f"Supported range is {MIN_PRECISION}..{MAX_PRECISION}"
        )
    return precision


def _round_half_away_from_zero(value: float, places: int) -> float:
    """
    Round value to a number of decimal places, ties going away from zero.

    Rounding works on the exact binary value of the float, so cell centres
    that sit exactly on a tie (they are dyadic fractions) round up in
    magnitude. places may be negative.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _decimal_places(delta: float) -> int:
    """Number of decimals that keeps a centre within its cell: floor(2 - log10(delta))."""
    return math.floor(2 - math.log10(delta))


def _bisect(lat: float, lon: float, precision: int) -> str:
    """Interleaved bisection producing a bare location id."""
    idx = 0
    bit = 0
    even_bit = True
    chars: List[str] = []

    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0

    while len(chars) < precision:
        if even_bit:
            lon_mid = (lon_min + lon_max) / 2
            if lon >= lon_mid:
                idx = idx * 2 + 1
                lon_min = lon_mid
            else:
                idx = idx * 2
                lon_max = lon_mid
        else:
            lat_mid = (lat_min + lat_max) / 2
            if lat >= lat_mid:
                idx = idx * 2 + 1
                lat_min = lat_mid
            else:
                idx = idx * 2
                lat_max = lat_mid
        even_bit = not even_bit

        bit += 1
        if bit == BITS_PER_CHAR:
            chars.append(BASE32[idx])
            bit = 0
            idx = 0

    return "".join(chars)


def encode(
    lat: float,
    lon: float,
    precision: Optional[int] = None,
    elevation: int = 0,
    elevation_type: str = ELEVATION_FLOOR,
) -> str:
    """
    Encode WGS84 coordinates to a location id.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        precision: Number of characters. When omitted, the shortest id
            (up to 9 characters) that decodes back to exactly (lat, lon) is
            used, falling back to 9.
        elevation: Optional elevation appended as a suffix
        elevation_type: "floor" or "heightincm"

    Returns:
        Location id string

    Example:
        encode(57.648, 10.41, 6) == "u4pruy"
    """
    lat, lon = validate_coords(lat, lon)

    if precision is None:
        for p in range(MIN_PRECISION, DEFAULT_PRECISION + 1):
            location_id = _bisect(lat, lon, p)
            position = decode(location_id)
            if position.lat == lat and position.lon == lon:
                return append_elevation(location_id, elevation, elevation_type)
        precision = DEFAULT_PRECISION

    validate_precision(precision)
    return append_elevation(_bisect(lat, lon, precision), elevation, elevation_type)


def decode(location_id: str) -> DecodedLocation:
    """
    Decode a location id to the centre of its cell.

    The centre is rounded to floor(2 - log10(delta)) decimal places per
    axis, delta being the cell's height or width, so the result carries no
    more accuracy than the id does.

    Args:
        location_id: Location id, with or without elevation suffix

    Returns:
        DecodedLocation with lat, lon, elevation, elevation_type and bounds
    """
    elevated = exclude_elevation(location_id)
    if not elevated.location_id:
        raise InvalidCellId("Invalid location id: empty")

    box = bounds(location_id)

    center = box.center
    lat = _round_half_away_from_zero(center.lat, _decimal_places(box.height))
    lon = _round_half_away_from_zero(center.lon, _decimal_places(box.width))

    return DecodedLocation(
        lat=lat,
        lon=lon,
        elevation=elevated.elevation,
        elevation_type=elevated.elevation_type,
        bounds=box,
    )


def bounds(location_id: str) -> BoundingBox:
    """
    South-west / north-east bounds of a location id's cell.

    Each character is expanded to 5 bits, most significant first. Even bit
    positions narrow longitude, odd positions narrow latitude; a 1 bit keeps
    the upper half.
    """
    elevated = exclude_elevation(location_id)

    even_bit = True
    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0

    for char in elevated.location_id:
        idx = char_value(char)
        for n in range(BITS_PER_CHAR - 1, -1, -1):
            bit = (idx >> n) & 1
            if even_bit:
                lon_mid = (lon_min + lon_max) / 2
                if bit == 1:
                    lon_min = lon_mid
                else:
                    lon_max = lon_mid
            else:
                lat_mid = (lat_min + lat_max) / 2
                if bit == 1:
                    lat_min = lat_mid
                else:
                    lat_max = lat_mid
            even_bit = not even_bit

    return BoundingBox(
        sw=LatLon(lat_min, lon_min),
        ne=LatLon(lat_max, lon_max),
        elevation=elevated.elevation,
        elevation_type=elevated.elevation_type,
    )


def _parse_elevation(raw: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidCellId(f"Invalid elevation in location id {raw!r}") from None


def exclude_elevation(raw: str) -> ElevatedLocationId:
    """
    Split a location id into its bare id and elevation.

    Args:
        raw: Location id, e.g. "6gkzwgjz@5" or "6gkzwgjz#87"

    Returns:
        ElevatedLocationId (elevation 0 / "floor" when there is no suffix)
    """
    if not isinstance(raw, str):
        raise InvalidCellId(f"Location id must be a string, got {type(raw).__name__}")
    if "@" in raw and "#" in raw:
        raise InvalidCellId(f"Invalid location id {raw!r}: both '@' and '#' present")

    if "#" in raw:
        location_id, _, value = raw.partition("#")
        return ElevatedLocationId(
            location_id.lower(), _parse_elevation(raw, value), ELEVATION_HEIGHT_CM
        )

    if "@" in raw:
        location_id, _, value = raw.partition("@")
        return ElevatedLocationId(
            location_id.lower(), _parse_elevation(raw, value), ELEVATION_FLOOR
        )

    return ElevatedLocationId(raw.lower())


def append_elevation(
    location_id: str,
    elevation: int = 0,
    elevation_type: str = ELEVATION_FLOOR,
) -> str:
    """
    Append an elevation suffix to a bare location id.

    An elevation of 0 leaves the id unchanged.
    """
    if elevation_type not in ELEVATION_TYPES:
        raise ValueError(
            f"Invalid elevation type {elevation_type!r}, expected one of {ELEVATION_TYPES}"
        )
    if elevation == 0:
        return location_id

    if int(elevation) != elevation:
        raise ValueError(f"Elevation must be a whole number, got {elevation!r}")

    marker = "#" if elevation_type == ELEVATION_HEIGHT_CM else "@"
    return f"{location_id}{marker}{int(elevation)}"


def is_location_id(value: str) -> bool:
    """Check the textual form of a location id (alphabet, length, elevation suffix)."""
    return isinstance(value, str) and LOCATION_ID_PATTERN.match(value) is not None


def _adjacent(location_id: str, direction: Direction) -> str:
    last = location_id[-1]
    head = parent(location_id)
    parity = len(location_id) % 2

    # Neighbour sits under a different parent: move the parent first
    if is_border_char(direction, parity, last) and head:
        head = _adjacent(head, direction)

    return head + neighbour_char(direction, parity, last)


def adjacent(location_id: str, direction: Union[Direction, str]) -> str:
    """
    Location id of the cell next to location_id in a compass direction.

    Args:
        location_id: Cell, optionally with elevation suffix (kept as is)
        direction: One of "n", "s", "e", "w" (or a Direction)

    Returns:
        Location id of the adjacent cell, same precision
    """
    elevated = exclude_elevation(location_id)
    if not elevated.location_id:
        raise InvalidCellId("Invalid location id: empty")
    direction = Direction.parse(direction)
    validate_location_id(elevated.location_id)

    neighbour = _adjacent(elevated.location_id, direction)
    return append_elevation(neighbour, elevated.elevation, elevated.elevation_type)


def neighbours(location_id: str) -> Dict[str, str]:
    """
    All 8 cells around location_id.

    Returns:
        Dictionary with keys n, ne, e, se, s, sw, w, nw
    """
    north = adjacent(location_id, Direction.N)
    south = adjacent(location_id, Direction.S)
    return {
        "n": north,
        "ne": adjacent(north, Direction.E),
        "e": adjacent(location_id, Direction.E),
        "se": adjacent(south, Direction.E),
        "s": south,
        "sw": adjacent(south, Direction.W),
        "w": adjacent(location_id, Direction.W),
        "nw": adjacent(north, Direction.W),
    }


def grid_lines(box: BoundingBox, precision: int = DEFAULT_PRECISION) -> List[Line]:
    """
    Grid lines of the cells of a given precision inside a bounding box.

    Walks north from the south-west cell emitting one horizontal line per
    cell edge, then east emitting one vertical line per cell edge. Each line
    is ((start_lon, start_lat), (end_lon, end_lat)).

    Args:
        box: Area to draw the grid in
        precision: Cell precision of the grid

    Returns:
        List of horizontal lines followed by vertical lines
    """
    lat_min, lon_min = box.sw.lat, box.sw.lon
    lat_max, lon_max = box.ne.lat, box.ne.lon

    sw_cell = encode(lat_min, lon_min, precision)
    sw_bounds = bounds(sw_cell)

    lines: List[Line] = []

    current = sw_cell
    north = sw_bounds.ne.lat
    while north <= lat_max:
        lines.append(((lon_min, north), (lon_max, north)))
        current = adjacent(current, Direction.N)
        next_north = bounds(current).ne.lat
        # Stepping past the pole wraps around
        if next_north <= north:
            break
        north = next_north

    current = sw_cell
    east = sw_bounds.ne.lon
    while east <= lon_max:
        lines.append(((east, lat_min), (east, lat_max)))
        current = adjacent(current, Direction.E)
        next_east = bounds(current).ne.lon
        if next_east <= east:
            break
        east = next_east

    return lines
