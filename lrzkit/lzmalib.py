"""Raw LZMA compression with the classic 5-byte properties header."""

from __future__ import annotations

import enum
import lzma
from typing import NamedTuple

LZMA_PROPS_SIZE = 5
_DICT_MIN = 1 << 12

# Dictionary size per compression level 0..7 (7 and above share the last).
_LEVEL_DICT_SIZES = (1 << 14, 1 << 16, 1 << 18, 1 << 20, 1 << 22, 1 << 24, 1 << 25, 1 << 26)

_DEFAULT_LEVEL = 5
_DEFAULT_LC = 3
_DEFAULT_LP = 0
_DEFAULT_PB = 2


class LzmaErrorKind(enum.Enum):
    """Categories of failure reported by the LZMA routines."""

    DATA = "data error"
    MEM = "memory allocation error"
    UNSUPPORTED = "unsupported properties"
    PARAM = "incorrect parameter"
    INPUT_EOF = "input ended too early"
    OUTPUT_EOF = "output buffer overflow"


class LzmaError(Exception):
    """Raised when LZMA compression or decompression fails."""

    def __init__(self, message: str, kind: LzmaErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


class LzmaProps(NamedTuple):
    """Decoded LZMA properties."""

    lc: int
    lp: int
    pb: int
    dict_size: int


def _check(value: int, low: int, high: int, name: str) -> None:
    if not low <= value <= high:
        raise LzmaError(f"{name} must be in {low}..{high}, got {value}", LzmaErrorKind.PARAM)


def encode_props(lc: int, lp: int, pb: int, dict_size: int) -> bytes:
    """Return the 5-byte properties header for the given settings."""
    _check(lc, 0, 8, "lc")
    _check(lp, 0, 4, "lp")
    _check(pb, 0, 4, "pb")
    _check(dict_size, 0, 0xFFFFFFFF, "dict_size")
    return bytes([(pb * 5 + lp) * 9 + lc]) + dict_size.to_bytes(4, "little")


def decode_props(props: bytes) -> LzmaProps:
    """Parse a 5-byte properties header."""
    raw = bytes(props)
    if len(raw) != LZMA_PROPS_SIZE:
        raise LzmaError(
            f"properties must be {LZMA_PROPS_SIZE} bytes, got {len(raw)}",
            LzmaErrorKind.UNSUPPORTED,
        )
    d = raw[0]
    if d >= 9 * 5 * 5:
        raise LzmaError(f"invalid properties byte {d:#04x}", LzmaErrorKind.UNSUPPORTED)
    lc = d % 9
    d //= 9
    return LzmaProps(lc=lc, lp=d % 5, pb=d // 5, dict_size=int.from_bytes(raw[1:], "little"))


def lzma_compress(
    data: bytes,
    level: int = -1,
    dict_size: int = 0,
    lc: int = -1,
    lp: int = -1,
    pb: int = -1,
    fb: int = -1,
    num_threads: int = -1,
) -> tuple[bytes, bytes]:
    """Compress ``data`` and return ``(props, compressed)``.

    A value of -1 (or 0 for ``dict_size``) selects the default for that setting.
    """
    if level == -1:
        level = _DEFAULT_LEVEL
    _check(level, 0, 9, "level")
    if dict_size == 0:
        dict_size = _LEVEL_DICT_SIZES[min(level, 7)]
    _check(dict_size, _DICT_MIN, 0xFFFFFFFF, "dict_size")
    lc = _DEFAULT_LC if lc == -1 else lc
    lp = _DEFAULT_LP if lp == -1 else lp
    pb = _DEFAULT_PB if pb == -1 else pb
    if fb == -1:
        fb = 64 if level >= 7 else 32
    _check(fb, 5, 273, "fb")
    if num_threads != -1:
        _check(num_threads, 1, 2, "num_threads")
    props = encode_props(lc, lp, pb, dict_size)

    filters = [{
        "id": lzma.FILTER_LZMA1,
        "preset": level,
        "dict_size": dict_size,
        "lc": lc,
        "lp": lp,
        "pb": pb,
        "nice_len": fb,
        "mode": lzma.MODE_FAST if level < 5 else lzma.MODE_NORMAL,
    }]
    try:
        compressed = lzma.compress(bytes(data), format=lzma.FORMAT_RAW, filters=filters)
    except MemoryError as exc:
        raise LzmaError(str(exc) or "out of memory", LzmaErrorKind.MEM) from exc
    except (lzma.LZMAError, ValueError) as exc:
        raise LzmaError(str(exc), LzmaErrorKind.PARAM) from exc
    return props, compressed


def lzma_uncompress(data: bytes, props: bytes) -> bytes:
    """Decompress raw LZMA ``data`` described by the 5-byte ``props`` header.

    Decoding stops at an end marker or when the input runs out.
    """
    settings = decode_props(props)
    filters = [{
        "id": lzma.FILTER_LZMA1,
        "lc": settings.lc,
        "lp": settings.lp,
        "pb": settings.pb,
        "dict_size": max(settings.dict_size, _DICT_MIN),
    }]
    try:
        decompressor = lzma.LZMADecompressor(format=lzma.FORMAT_RAW, filters=filters)
    except (lzma.LZMAError, ValueError) as exc:
        raise LzmaError(str(exc), LzmaErrorKind.UNSUPPORTED) from exc
    try:
        output = decompressor.decompress(bytes(data))
    except MemoryError as exc:
        raise LzmaError(str(exc) or "out of memory", LzmaErrorKind.MEM) from exc
    except lzma.LZMAError as exc:
        raise LzmaError(str(exc), LzmaErrorKind.DATA) from exc
    if not output and not decompressor.eof:
        raise LzmaError("compressed input ended too early", LzmaErrorKind.INPUT_EOF)
    return output