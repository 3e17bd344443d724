"""
Prefix-delta encoding of location id lists ("polyhash").

A polyhash is a list of blocks. Each block groups consecutive location ids
of the same precision. The very first id is stored in full; every later
id stores only the characters after its longest common prefix with the
id before it. For sorted, spatially clustered lists this removes most of
the repeated characters.

Example:
    ["drsv", "drtjb", "drtj8", "drtj2", "drtj0"]
    -> [PolyhashBlock(4, ("drsv",)), PolyhashBlock(5, ("tjb", "8", "2", "0"))]
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .alphabet import MAX_PRECISION, MIN_PRECISION
from .codec import decode, encode, validate_precision
from .config import get_settings
from .errors import PrecisionOutOfRange


@dataclass(frozen=True)
class PolyhashBlock:
    """A run of location ids sharing one precision, stored as suffixes."""
    precision: int
    data: Tuple[str, ...]

    def __post_init__(self):
        if not MIN_PRECISION <= self.precision <= MAX_PRECISION:
            raise PrecisionOutOfRange(
                f"Invalid block precision {self.precision}. "
                f"Supported range is {MIN_PRECISION}..{MAX_PRECISION}"
            )
        object.__setattr__(self, "data", tuple(self.data))

    def to_dict(self) -> Dict[str, Any]:
        return {"precision": self.precision, "data": list(self.data)}

    @classmethod
    def from_dict(cls, value: Dict[str, Any]) -> "PolyhashBlock":
        return cls(int(value["precision"]), tuple(value["data"]))


def _common_prefix_length(a: str, b: str) -> int:
    i = 0
    limit = min(len(a), len(b))
    while i < limit and a[i] == b[i]:
        i += 1
    return i


def deflate(location_ids: Iterable[str]) -> List[PolyhashBlock]:
    """
    Group location ids by precision and strip common prefixes.

    Consecutive duplicates are dropped. A new block starts whenever the
    length changes. Each suffix is taken relative to the previous id, not
    the first id of its block.

    Args:
        location_ids: Ordered location ids (bare, no elevation)

    Returns:
        List of PolyhashBlock
    """
    blocks: List[Tuple[int, List[str]]] = []
    previous: Optional[str] = None

    for current in location_ids:
        if previous is not None and current == previous:
            continue

        if previous is None:
            blocks.append((len(current), [current]))
        else:
            i = _common_prefix_length(previous, current)
            # Keep at least one character so every entry can be written out
            if i == len(current):
                i -= 1
            if len(current) != len(previous):
                blocks.append((len(current), []))
            blocks[-1][1].append(current[i:])

        previous = current

    return [PolyhashBlock(precision, tuple(data)) for precision, data in blocks]


def inflate(blocks: Iterable[PolyhashBlock]) -> List[str]:
    """
    Expand a polyhash back into full location ids.

    Each entry is rebuilt as previous[:precision - len(suffix)] + suffix,
    where previous is the last id rebuilt, possibly from an earlier block.
    """
    result: List[str] = []
    previous: Optional[str] = None

    for block in blocks:
        for suffix in block.data:
            if previous is None:
                location_id = suffix
            else:
                location_id = previous[:block.precision - len(suffix)] + suffix
            result.append(location_id)
            previous = location_id

    return result


def group_by_prefix(location_ids: Iterable[str]) -> List[List[str]]:
    """
    Group location ids by precision, keeping the first id of each group whole.

    Unlike deflate, every group starts with a full location id, so groups
    can be expanded independently of each other.
    """
    groups: List[List[str]] = []
    previous: Optional[str] = None

    for current in location_ids:
        if previous is not None and current == previous:
            continue

        if previous is None or len(current) != len(previous):
            groups.append([current])
        else:
            i = _common_prefix_length(previous, current)
            if i == len(current):
                i -= 1
            groups[-1].append(current[i:])

        previous = current

    return groups


def to_polyhash(
    points: Sequence[Sequence[float]],
    precision: Optional[int] = None,
) -> List[PolyhashBlock]:
    """
    Encode a list of (lat, lon) points as a polyhash.

    Args:
        points: Sequence of (lat, lon) pairs, e.g. a polygon outline
        precision: Location id precision for every point; defaults to
            UNL_CORE_DEFAULT_PRECISION

    Returns:
        Deflated list of PolyhashBlock
    """
    if precision is None:
        precision = get_settings().default_precision
    validate_precision(precision)
    return deflate(encode(point[0], point[1], precision) for point in points)


def to_coordinates(blocks: Iterable[PolyhashBlock]) -> List[List[float]]:
    """
    Decode a polyhash to cell centres.

    Returns:
        List of [lon, lat] pairs rounded to 6 decimal places
    """
    coordinates = []
    for location_id in inflate(blocks):
        point = decode(location_id)
        coordinates.append([round(point.lon, 6), round(point.lat, 6)])
    return coordinates
