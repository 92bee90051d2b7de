"""Reconstruction of data from rzip literal and match records."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Protocol

from lrzkit.md5 import DIGEST_SIZE, Md5

_MASK32 = 0xFFFFFFFF

# Width in bytes of the length field in every record header.
HEADER_LENGTH_BYTES = 2
CHECKSUM_BYTES = 4

_KB = 1024
_MB = 1024 * 1024
_GB = 1024 * 1024 * 1024


class RunzipError(Exception):
    """Raised when an rzip chunk is corrupt or fails an integrity check."""


class ChunkLike(Protocol):
    """What the decoder needs from one chunk."""

    chunk_bytes: int
    control: bytes
    literals: bytes


@dataclass(frozen=True)
class ChunkStreams:
    """The two streams of one chunk.

    ``control`` carries record headers, match offsets and the trailing
    checksum; ``literals`` carries the bytes of literal runs.  Match offsets
    are ``chunk_bytes`` wide.
    """

    chunk_bytes: int
    control: bytes
    literals: bytes


class ProgressUnit(NamedTuple):
    """Divisor and suffix used to display progress for a given size."""

    divisor: int
    suffix: str


class RunzipResult(NamedTuple):
    """Decoded data together with its MD5 digest."""

    data: bytes
    md5: bytes


def crc_update(crc: int, data: bytes) -> int:
    """Continue a raw CRC-32 (no initial or final inversion) over ``data``."""
    return ~zlib.crc32(bytes(data), ~crc & _MASK32) & _MASK32


def progress_unit(expected_size: int) -> ProgressUnit:
    """Pick the unit progress is shown in for an output of ``expected_size`` bytes."""
    if expected_size > 10 * _GB:
        return ProgressUnit(_GB, "GB")
    if expected_size > 10 * _MB:
        return ProgressUnit(_MB, "MB")
    if expected_size > 10 * _KB:
        return ProgressUnit(_KB, "KB")
    return ProgressUnit(1, "")


class _StreamReader:
    """Sequential reader over one stream that raises on short reads."""

    def __init__(self, data: bytes, name: str) -> None:
        self._data = memoryview(bytes(data))
        self._pos = 0
        self._name = name

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read(self, length: int) -> bytes:
        if length > self.remaining:
            raise RunzipError(f"Stream read of {length} bytes failed on {self._name} stream")
        chunk = self._data[self._pos:self._pos + length].tobytes()
        self._pos += length
        return chunk

    def read_uint(self, width: int) -> int:
        return int.from_bytes(self.read(width), "little")


def _copy_match(out: bytearray, length: int, offset: int) -> None:
    if offset < 1:
        raise RunzipError("Failed fd history in unzip_match due to corrupt archive")
    start = len(out) - offset
    if start < 0:
        raise RunzipError(
            f"Seek failed by {offset} from {len(out)} on history in unzip_match"
        )
    while length:
        n = min(length, offset)
        out += out[start:start + n]
        length -= n


def _decode_into(chunk: ChunkLike, out: bytearray) -> int:
    """Append the decoded bytes of ``chunk`` to ``out``; return how many were added."""
    width = chunk.chunk_bytes
    if not 1 <= width <= 8:
        raise RunzipError(f"chunk_bytes {width} is invalid in runzip_chunk")
    control = _StreamReader(chunk.control, "control")
    literals = _StreamReader(chunk.literals, "literal")
    base = len(out)
    if control.remaining == 0:
        return 0

    while True:
        head = control.read_uint(1)
        length = control.read_uint(HEADER_LENGTH_BYTES)
        if head == 0 and length == 0:
            break
        if head == 0:
            out += literals.read(length)
        else:
            offset = control.read_uint(width)
            if length < 1:
                raise RunzipError("Failed fd history in unzip_match due to corrupt archive")
            _copy_match(out, length, offset)

    if control.remaining == 0:
        return len(out) - base
    stored = control.read_uint(CHECKSUM_BYTES)
    cksum = crc_update(0, out[base:])
    if stored != cksum:
        raise RunzipError(f"Bad checksum: 0x{cksum:08x} - expected: 0x{stored:08x}")
    if control.remaining:
        raise RunzipError(f"{control.remaining} unexpected bytes after chunk checksum")
    return len(out) - base


def decode_chunk(chunk: ChunkLike, history: bytes = b"") -> bytes:
    """Decode one chunk; matches may reach back into ``history``, the output so far."""
    out = bytearray(history)
    _decode_into(chunk, out)
    return bytes(out[len(history):])


def runzip(chunks: Iterable[ChunkLike], expected_md5: Optional[bytes] = None) -> RunzipResult:
    """Decode a sequence of chunks and check the result against ``expected_md5``."""
    out = bytearray()
    ctx = Md5()
    for chunk in chunks:
        start = len(out)
        _decode_into(chunk, out)
        ctx.update(out[start:])
    digest = ctx.digest()
    if expected_md5 is not None:
        stored = bytes(expected_md5)
        if len(stored) != DIGEST_SIZE:
            raise RunzipError(f"Stored MD5 must be {DIGEST_SIZE} bytes, got {len(stored)}")
        if stored != digest:
            raise RunzipError(
                f"MD5 CHECK FAILED.\nStored:{stored.hex()}\nOutput file:{digest.hex()}"
            )
    return RunzipResult(bytes(out), digest)