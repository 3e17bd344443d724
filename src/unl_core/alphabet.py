"""
Cell alphabet shared by every codec in the package.

Location ids are written in a base-32 alphabet of digits and lowercase
letters. The letters a, i, l and o are left out because they are easily
confused with digits. Each character carries 5 bits of interleaved
longitude/latitude information.
"""

from typing import Dict

from .errors import InvalidCellId

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"

# Character -> 5-bit value
CHAR_INDEX: Dict[str, int] = {char: i for i, char in enumerate(BASE32)}

BITS_PER_CHAR = 5

MIN_PRECISION = 1
MAX_PRECISION = 16
DEFAULT_PRECISION = 9


def char_value(char: str) -> int:
    """
    Return the 5-bit value of an alphabet character.

    Raises:
        InvalidCellId: If the character is not part of the alphabet.
    """
    try:
        return CHAR_INDEX[char]
    except KeyError:
        raise InvalidCellId(f"Invalid location id character: {char!r}") from None


def value_char(value: int) -> str:
    """Return the alphabet character for a 5-bit value."""
    if not 0 <= value < len(BASE32):
        raise ValueError(f"Value out of range for base32 alphabet: {value}")
    return BASE32[value]


def validate_location_id(location_id: str) -> str:
    """
    Check that every character of a bare location id is in the alphabet.

    Returns:
        The location id, unchanged.
    """
    for char in location_id:
        if char not in CHAR_INDEX:
            raise InvalidCellId(
                f"Invalid location id {location_id!r}: unexpected character {char!r}"
            )
    return location_id
