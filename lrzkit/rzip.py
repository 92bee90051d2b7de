"""The rzip stage: encode data as chunks of literal runs and long-range matches.

Each chunk carries two streams.  The control stream holds record headers
(a type byte and a 2-byte little-endian length), match distances
``chunk_bytes`` wide, a terminating empty literal header and finally a
4-byte CRC of the chunk's bytes.  The literal stream holds the bytes of the
literal runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

from lrzkit.hashtable import LEVELS, Level
from lrzkit.matcher import DEFAULT_LEVEL, Literal, MatchFinder, RzipStats
from lrzkit.md5 import Md5
from lrzkit.runzip import CHECKSUM_BYTES, HEADER_LENGTH_BYTES, crc_update

# One unit of the command-line window size, in bytes.
CHUNK_MULTIPLE = 100 * 1024 * 1024

_LITERAL_HEAD = 0
_MATCH_HEAD = 1


@dataclass(frozen=True)
class RzipChunk:
    """One encoded chunk: its offset width, both streams and its decoded size."""

    chunk_bytes: int
    control: bytes
    literals: bytes
    size: int


class RzipResult(NamedTuple):
    """Encoded chunks of a whole input together with its MD5 digest."""

    chunks: list[RzipChunk]
    md5: bytes
    size: int


def chunk_byte_width(size: int) -> int:
    """Return how many bytes are needed to store offsets within a chunk of ``size``."""
    if size < 0:
        raise ValueError(f"chunk size must not be negative, got {size}")
    bits = max(8, size.bit_length())
    return (bits + 7) // 8


def _header(head: int, length: int) -> bytes:
    return bytes([head]) + length.to_bytes(HEADER_LENGTH_BYTES, "little")


class RzipEncoder:
    """Encodes data chunk by chunk with a shared match finder."""

    def __init__(
        self,
        level: Union[Level, int] = DEFAULT_LEVEL,
        window: Optional[int] = None,
        seed: Optional[object] = None,
    ) -> None:
        if isinstance(level, int) and not 0 <= level < len(LEVELS):
            raise ValueError(f"level must be in 0..{len(LEVELS) - 1}, got {level}")
        if window is not None and window < 1:
            raise ValueError("Window must be positive")
        self.window = window
        self.finder = MatchFinder(level, seed)

    @property
    def stats(self) -> RzipStats:
        """Counters accumulated over every chunk encoded so far."""
        return self.finder.stats

    def encode_chunk(self, data: bytes) -> RzipChunk:
        """Encode one chunk; matches only refer back within the chunk."""
        data = bytes(data)
        width = chunk_byte_width(len(data))
        control = bytearray()
        literals = bytearray()
        for record in self.finder.search(data):
            if record.length == 0:
                continue
            if isinstance(record, Literal):
                control += _header(_LITERAL_HEAD, record.length)
                literals += data[record.start:record.start + record.length]
            else:
                control += _header(_MATCH_HEAD, record.length)
                control += record.distance.to_bytes(width, "little")
        control += _header(_LITERAL_HEAD, 0)
        control += crc_update(0, data).to_bytes(CHECKSUM_BYTES, "little")
        return RzipChunk(width, bytes(control), bytes(literals), len(data))

    def compress(self, data: bytes) -> RzipResult:
        """Split ``data`` into windows, encode each, and digest the whole input."""
        data = bytes(data)
        step = self.window or len(data) or 1
        chunks = [
            self.encode_chunk(data[start:start + step])
            for start in range(0, len(data), step)
        ]
        if not chunks:
            chunks.append(self.encode_chunk(b""))
        return RzipResult(chunks, Md5(data).digest(), len(data))


def rzip_compress(
    data: bytes, level: Union[Level, int] = DEFAULT_LEVEL, window: Optional[int] = None
) -> RzipResult:
    """Encode ``data`` in chunks of at most ``window`` bytes (all at once if None)."""
    return RzipEncoder(level, window).compress(data)