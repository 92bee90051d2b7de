import zlib

import pytest

from lrzkit.md5 import md5_buffer
from lrzkit.runzip import (
    ChunkStreams,
    RunzipError,
    crc_update,
    decode_chunk,
    progress_unit,
    runzip,
)


def literal(n):
    return b"\x00" + n.to_bytes(2, "little")


def match(n, offset, width=2):
    return b"\x01" + n.to_bytes(2, "little") + offset.to_bytes(width, "little")


END = b"\x00\x00\x00"


def make_chunk(records, literals, expected, width=2, with_crc=True):
    control = b"".join(records) + END
    if with_crc:
        control += crc_update(0, expected).to_bytes(4, "little")
    return ChunkStreams(chunk_bytes=width, control=control, literals=literals)


def test_crc_update_matches_standard_crc32():
    data = b"The quick brown fox jumps over the lazy dog"
    assert crc_update(0xFFFFFFFF, data) ^ 0xFFFFFFFF == zlib.crc32(data)
    assert crc_update(0, b"") == 0


def test_crc_update_is_incremental():
    data = b"abcdefghijklmnop" * 10
    assert crc_update(crc_update(0, data[:37]), data[37:]) == crc_update(0, data)


def test_literal_only_chunk():
    chunk = make_chunk([literal(5)], b"hello", b"hello")
    assert decode_chunk(chunk) == b"hello"


def test_overlapping_match_repeats_pattern():
    expected = b"abcabcabc"
    chunk = make_chunk([literal(3), match(6, 3)], b"abc", expected)
    assert decode_chunk(chunk) == expected


def test_match_reaches_into_history():
    chunk = make_chunk([match(3, 3)], b"", b"xyz")
    assert decode_chunk(chunk, b"xyz") == b"xyz"


def test_wide_offsets():
    expected = b"0123456789" * 2
    chunk = make_chunk([literal(10), match(10, 10, 8)], b"0123456789", expected, width=8)
    assert decode_chunk(chunk) == expected


def test_chunk_without_checksum_is_accepted():
    chunk = make_chunk([literal(4)], b"data", b"data", with_crc=False)
    assert decode_chunk(chunk) == b"data"


def test_empty_control_stream_yields_nothing():
    assert decode_chunk(ChunkStreams(2, b"", b"")) == b""


def test_bad_checksum_raises():
    chunk = make_chunk([literal(5)], b"hello", b"jello")
    with pytest.raises(RunzipError, match="Bad checksum"):
        decode_chunk(chunk)


@pytest.mark.parametrize("width", [0, 9])
def test_invalid_chunk_bytes(width):
    chunk = ChunkStreams(width, END, b"")
    with pytest.raises(RunzipError, match="chunk_bytes"):
        decode_chunk(chunk)


def test_zero_offset_is_corrupt():
    chunk = make_chunk([literal(3), match(3, 0)], b"abc", b"abcabc")
    with pytest.raises(RunzipError, match="corrupt archive"):
        decode_chunk(chunk)


def test_offset_before_start_is_rejected():
    chunk = make_chunk([literal(2), match(3, 5)], b"ab", b"ab")
    with pytest.raises(RunzipError, match="Seek failed"):
        decode_chunk(chunk)


def test_truncated_control_stream():
    chunk = ChunkStreams(2, literal(3)[:2], b"abc")
    with pytest.raises(RunzipError, match="Stream read"):
        decode_chunk(chunk)


def test_truncated_literal_stream():
    chunk = make_chunk([literal(10)], b"short", b"short")
    with pytest.raises(RunzipError, match="Stream read"):
        decode_chunk(chunk)


def test_runzip_joins_chunks_and_checks_md5():
    first = make_chunk([literal(4)], b"wxyz", b"wxyz")
    second = make_chunk([match(8, 4)], b"", b"wxyzwxyz")
    expected = b"wxyz" + b"wxyzwxyz"
    result = runzip([first, second], md5_buffer(expected))
    assert result.data == expected
    assert result.md5 == md5_buffer(expected)


def test_runzip_without_expected_md5_reports_digest():
    chunk = make_chunk([literal(3)], b"abc", b"abc")
    result = runzip([chunk])
    assert result.md5.hex() == "900150983cd24fb0d6963f7d28e17f72"


def test_runzip_md5_mismatch_raises():
    chunk = make_chunk([literal(3)], b"abc", b"abc")
    with pytest.raises(RunzipError, match="MD5 CHECK FAILED"):
        runzip([chunk], md5_buffer(b"abd"))


@pytest.mark.parametrize(
    "size, divisor, suffix",
    [
        (10240, 1, ""),
        (10241, 1024, "KB"),
        (10485760, 1024, "KB"),
        (10485761, 1048576, "MB"),
        (10737418240, 1048576, "MB"),
        (10737418241, 1073741824, "GB"),
    ],
)
def test_progress_unit(size, divisor, suffix):
    assert progress_unit(size) == (divisor, suffix)