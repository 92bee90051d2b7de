import pytest

from lrzkit.lzmalib import (
    LzmaError,
    LzmaErrorKind,
    decode_props,
    encode_props,
    lzma_compress,
    lzma_uncompress,
)

SAMPLE = (b"the quick brown fox jumps over the lazy dog. " * 200) + bytes(range(256))


def test_encode_props_default_settings():
    assert encode_props(3, 0, 2, 1 << 24) == bytes([0x5D, 0x00, 0x00, 0x00, 0x01])


@pytest.mark.parametrize(
    "lc,lp,pb,dict_size",
    [(0, 0, 0, 4096), (3, 0, 2, 1 << 20), (8, 4, 4, 0xFFFFFFFF), (1, 2, 3, 12345)],
)
def test_props_round_trip(lc, lp, pb, dict_size):
    props = decode_props(encode_props(lc, lp, pb, dict_size))
    assert (props.lc, props.lp, props.pb, props.dict_size) == (lc, lp, pb, dict_size)


@pytest.mark.parametrize("args", [(9, 0, 2, 4096), (3, 5, 2, 4096), (3, 0, 5, 4096), (3, 0, 2, -1)])
def test_encode_props_rejects_bad_values(args):
    with pytest.raises(LzmaError) as info:
        encode_props(*args)
    assert info.value.kind is LzmaErrorKind.PARAM


def test_decode_props_wrong_length():
    with pytest.raises(LzmaError) as info:
        decode_props(b"\x5d\x00\x00")
    assert info.value.kind is LzmaErrorKind.UNSUPPORTED


def test_decode_props_invalid_first_byte():
    with pytest.raises(LzmaError) as info:
        decode_props(bytes([225, 0, 0, 1, 0]))
    assert info.value.kind is LzmaErrorKind.UNSUPPORTED


@pytest.mark.parametrize("level", [0, 1, 2, 3, 4])
def test_round_trip_by_level(level):
    props, packed = lzma_compress(SAMPLE, level=level)
    assert lzma_uncompress(packed, props) == SAMPLE


@pytest.mark.parametrize("level", [5, 7, 9])
def test_round_trip_high_level_small_dictionary(level):
    props, packed = lzma_compress(SAMPLE, level=level, dict_size=1 << 16)
    assert decode_props(props).dict_size == 1 << 16
    assert lzma_uncompress(packed, props) == SAMPLE


def test_compression_shrinks_repetitive_data():
    props, packed = lzma_compress(SAMPLE, level=3)
    assert len(packed) < len(SAMPLE) // 4


def test_default_props_follow_level_table():
    props, _ = lzma_compress(b"data", level=1)
    decoded = decode_props(props)
    assert (decoded.lc, decoded.lp, decoded.pb) == (3, 0, 2)
    assert decoded.dict_size == 1 << 16


def test_level_three_dictionary_is_one_megabyte():
    props, _ = lzma_compress(b"data", level=3)
    assert decode_props(props).dict_size == 1 << 20


def test_custom_literal_settings_round_trip():
    props, packed = lzma_compress(SAMPLE, level=2, lc=0, lp=2, pb=0, fb=64)
    decoded = decode_props(props)
    assert (decoded.lc, decoded.lp, decoded.pb) == (0, 2, 0)
    assert lzma_uncompress(packed, props) == SAMPLE


def test_empty_input_round_trip():
    props, packed = lzma_compress(b"", level=1)
    assert lzma_uncompress(packed, props) == b""


@pytest.mark.parametrize(
    "kwargs",
    [{"level": 10}, {"level": 1, "fb": 4}, {"level": 1, "fb": 274}, {"level": 1, "num_threads": 3},
     {"level": 1, "lc": 9}, {"level": 1, "dict_size": 100}],
)
def test_compress_rejects_bad_parameters(kwargs):
    with pytest.raises(LzmaError) as info:
        lzma_compress(b"abc", **kwargs)
    assert info.value.kind is LzmaErrorKind.PARAM


def test_uncompress_empty_input_reports_input_eof():
    props, _ = lzma_compress(SAMPLE, level=1)
    with pytest.raises(LzmaError) as info:
        lzma_uncompress(b"", props)
    assert info.value.kind is LzmaErrorKind.INPUT_EOF


def test_uncompress_corrupt_data():
    props = encode_props(3, 0, 2, 1 << 16)
    with pytest.raises(LzmaError) as info:
        lzma_uncompress(b"\x01" * 64, props)
    assert info.value.kind is LzmaErrorKind.DATA


def test_truncated_stream_yields_prefix():
    props, packed = lzma_compress(SAMPLE, level=1)
    partial = lzma_uncompress(packed[: len(packed) // 2], props)
    assert SAMPLE.startswith(partial)
    assert len(partial) < len(SAMPLE)