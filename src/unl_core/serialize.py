"""
Polyhash binary serialization module.

This module packs a polyhash (see polyhash.py) into a compact bitstream,
rendered as base64 for text transport.

Binary Format (MSB first, one bit at a time):
- For each location id, in order across all blocks:
  - 1 header bit: 1 = first id of a new block, 0 = same block
  - If the header bit is 1: 4 bits of block precision (16 is written as 0)
  - For each character of the stored suffix:
    - 1 terminator bit: 1 on the last character of the suffix
    - 5 bits: the character's index in the base-32 alphabet
- Zero padding up to the next byte boundary

The format carries no version; both ends must agree on the alphabet.

Example:
    deflate(["d", "dr"]) -> 1 0001 1 01100 1 0010 1 10111 00 -> "jZLc"
"""

import base64
import binascii
from typing import Iterable, List

import structlog

from .alphabet import BITS_PER_CHAR, MAX_PRECISION, char_value, value_char
from .errors import MalformedPolyhash
from .polyhash import PolyhashBlock, inflate

logger = structlog.get_logger(__name__)

PRECISION_BITS = 4
HEADER_BITS = 1
TERMINATOR_BITS = 1


class BitWriter:
    """Appends bits MSB first into a byte buffer."""

    def __init__(self):
        self._buffer = bytearray()
        self._bit_count = 0

    def write_bit(self, bit: int) -> None:
        if self._bit_count % 8 == 0:
            self._buffer.append(0)
        if bit:
            self._buffer[-1] |= 0x80 >> (self._bit_count % 8)
        self._bit_count += 1

    def write_bits(self, value: int, width: int) -> None:
        """Write the low width bits of value, most significant first."""
        for i in range(width - 1, -1, -1):
            self.write_bit((value >> i) & 1)

    @property
    def bit_count(self) -> int:
        return self._bit_count

    def getvalue(self) -> bytes:
        """Buffer contents; unused bits of the last byte are zero."""
        return bytes(self._buffer)


class BitReader:
    """Reads bits MSB first from a byte buffer."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) * 8 - self._pos

    def read_bit(self) -> int:
        if self._pos >= len(self._data) * 8:
            raise MalformedPolyhash("Unexpected end of data")
        byte = self._data[self._pos // 8]
        bit = (byte >> (7 - self._pos % 8)) & 1
        self._pos += 1
        return bit

    def read_bits(self, width: int) -> int:
        value = 0
        for _ in range(width):
            value = (value << 1) | self.read_bit()
        return value


class PolyhashSerializer:
    """Serializes polyhash blocks to the packed bit layout."""

    def serialize(self, blocks: Iterable[PolyhashBlock]) -> bytes:
        """
        Serialize polyhash blocks to bytes.

        Args:
            blocks: Polyhash blocks, as produced by deflate()

        Returns:
            Packed bytes, zero padded to a byte boundary
        """
        writer = BitWriter()

        for block in blocks:
            is_header = True
            for suffix in block.data:
                if not suffix:
                    raise ValueError(f"Empty suffix in block of precision {block.precision}")

                writer.write_bit(1 if is_header else 0)
                if is_header:
                    # 4 bits hold 0..15; precision 16 wraps to 0
                    writer.write_bits(block.precision % MAX_PRECISION, PRECISION_BITS)
                    is_header = False

                for i, char in enumerate(suffix):
                    writer.write_bit(1 if i == len(suffix) - 1 else 0)
                    writer.write_bits(char_value(char), BITS_PER_CHAR)

        return writer.getvalue()


class PolyhashDeserializer:
    """Parses the packed bit layout back into polyhash blocks."""

    def deserialize(self, data: bytes) -> List[PolyhashBlock]:
        """
        Deserialize polyhash blocks from bytes.

        Parsing stops one bit before the end of the buffer. A trailing id
        without a terminator bit is zero padding and is discarded.
        """
        reader = BitReader(data)
        blocks: List[tuple] = []

        while reader.remaining > 1:
            is_header = reader.read_bit()
            if is_header:
                if reader.remaining < PRECISION_BITS:
                    break
                precision = reader.read_bits(PRECISION_BITS) or MAX_PRECISION
                blocks.append((precision, []))
            elif not blocks:
                raise MalformedPolyhash("Polyhash does not start with a block header")

            chars: List[str] = []
            terminated = False
            while reader.remaining >= TERMINATOR_BITS + BITS_PER_CHAR:
                is_last = reader.read_bit()
                chars.append(value_char(reader.read_bits(BITS_PER_CHAR)))
                if is_last:
                    terminated = True
                    break

            if not terminated:
                break
            blocks[-1][1].append("".join(chars))

        return [PolyhashBlock(precision, tuple(data)) for precision, data in blocks if data]


def compress_bytes(blocks: Iterable[PolyhashBlock]) -> bytes:
    """Pack polyhash blocks into raw bytes."""
    return PolyhashSerializer().serialize(blocks)


def decompress_bytes(data: bytes) -> List[str]:
    """Unpack raw bytes into the full location id list."""
    return inflate(PolyhashDeserializer().deserialize(data))


def compress(blocks: Iterable[PolyhashBlock]) -> str:
    """
    Pack polyhash blocks and render them as base64.

    Args:
        blocks: Polyhash blocks, as produced by deflate() or to_cluster()

    Returns:
        Base64 string
    """
    blocks = list(blocks)
    data = compress_bytes(blocks)
    logger.debug("polyhash_compressed", blocks=len(blocks), bytes=len(data))
    return base64.b64encode(data).decode("ascii")


def decompress(compressed: str) -> List[str]:
    """
    Decode a base64 polyhash back into full location ids.

    Args:
        compressed: Output of compress()

    Returns:
        Inflated list of location ids
    """
    try:
        data = base64.b64decode(compressed, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPolyhash(f"Invalid base64 polyhash: {e}") from e

    location_ids = decompress_bytes(data)
    logger.debug("polyhash_decompressed", bytes=len(data), location_ids=len(location_ids))
    return location_ids
