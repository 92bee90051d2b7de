"""MD5 message digest (RFC 1321) for memory buffers and binary streams."""

from __future__ import annotations

import math
import struct
from typing import BinaryIO

DIGEST_SIZE = 16
BLOCK_SIZE = 64
STREAM_BLOCKSIZE = 32768

_MASK = 0xFFFFFFFF
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)

# T[i] = floor(2**32 * |sin(i + 1)|), as defined by RFC 1321.
_T = tuple(int(abs(math.sin(i + 1)) * 2**32) & _MASK for i in range(64))

_SHIFTS = (
    (7, 12, 17, 22),
    (5, 9, 14, 20),
    (4, 11, 16, 23),
    (6, 10, 15, 21),
)

_WORDS = struct.Struct("<16I")


def _rotl(value: int, shift: int) -> int:
    value &= _MASK
    return ((value << shift) | (value >> (32 - shift))) & _MASK


def _round_step(i: int, b: int, c: int, d: int) -> tuple[int, int]:
    """Return the round function value and message word index for step ``i``."""
    if i < 16:
        return d ^ (b & (c ^ d)), i
    if i < 32:
        return c ^ (d & (b ^ c)), (5 * i + 1) % 16
    if i < 48:
        return b ^ c ^ d, (3 * i + 5) % 16
    return c ^ (b | (~d & _MASK)), (7 * i) % 16


def _compress(state: tuple[int, int, int, int], block: bytes) -> tuple[int, int, int, int]:
    """Process one 64-byte block and return the new state."""
    words = _WORDS.unpack(block)
    a, b, c, d = state
    for i in range(64):
        f, k = _round_step(i, b, c, d)
        shift = _SHIFTS[i // 16][i % 4]
        rotated = _rotl(a + f + words[k] + _T[i], shift)
        a, d, c, b = d, c, b, (b + rotated) & _MASK
    return (
        (state[0] + a) & _MASK,
        (state[1] + b) & _MASK,
        (state[2] + c) & _MASK,
        (state[3] + d) & _MASK,
    )


class Md5:
    """Incremental MD5 computation."""

    digest_size = DIGEST_SIZE
    block_size = BLOCK_SIZE

    def __init__(self, data: bytes = b"") -> None:
        self._state = _INITIAL_STATE
        self._pending = b""
        self._length = 0
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        """Feed more bytes into the digest; any length is accepted."""
        chunk = bytes(memoryview(data))
        self._length += len(chunk)
        buffered = self._pending + chunk
        full = len(buffered) - len(buffered) % BLOCK_SIZE
        state = self._state
        for start in range(0, full, BLOCK_SIZE):
            state = _compress(state, buffered[start:start + BLOCK_SIZE])
        self._state = state
        self._pending = buffered[full:]

    def digest(self) -> bytes:
        """Return the 16-byte digest of everything fed so far."""
        bit_length = (self._length << 3) & 0xFFFFFFFFFFFFFFFF
        pad_len = (56 - (len(self._pending) + 1)) % BLOCK_SIZE
        tail = self._pending + b"\x80" + b"\x00" * pad_len + struct.pack("<Q", bit_length)
        state = self._state
        for start in range(0, len(tail), BLOCK_SIZE):
            state = _compress(state, tail[start:start + BLOCK_SIZE])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal."""
        return self.digest().hex()

    def copy(self) -> Md5:
        """Return an independent copy of the current computation."""
        clone = Md5()
        clone._state = self._state
        clone._pending = self._pending
        clone._length = self._length
        return clone


def md5_buffer(data: bytes) -> bytes:
    """Return the MD5 digest of a whole buffer."""
    return Md5(data).digest()


def md5_stream(stream: BinaryIO) -> bytes:
    """Return the MD5 digest of everything remaining in a binary stream."""
    ctx = Md5()
    for block in iter(lambda: stream.read(STREAM_BLOCKSIZE), b""):
        ctx.update(block)
    return ctx.digest()