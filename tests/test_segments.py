import base64

import pytest

from pkg_jwt import JWTError, SegmentDecodeError, decode_segment, encode_segment
from pkg_jwt.adapters.encoding.json_codec import loads_segment


def test_encode_strips_padding_and_uses_url_alphabet():
    assert encode_segment(b"") == ""
    assert encode_segment(b"\xfb\xff") == "-_8"
    assert encode_segment(b"a") == "YQ"
    assert "=" not in encode_segment(b"any carnal pleas")


def test_decode_restores_padding():
    assert decode_segment("-_8") == b"\xfb\xff"
    assert decode_segment("YQ") == b"a"
    assert decode_segment("YWI") == b"ab"
    assert decode_segment("YWJj") == b"abc"
    assert decode_segment("") == b""


def test_decode_matches_stdlib_for_binary_data():
    data = bytes(range(256))
    encoded = encode_segment(data)
    assert encoded == base64.urlsafe_b64encode(data).decode().rstrip("=")
    assert decode_segment(encoded) == data


@pytest.mark.parametrize(
    "segment",
    [
        "YQ==",      # padding is not allowed inside a token
        "Y",         # no encoder produces a 1 mod 4 length
        "ab+c",      # standard alphabet
        "ab/c",
        "ab c",
        "YWJj\n",
        "é",
    ],
)
def test_decode_rejects_invalid_segments(segment):
    with pytest.raises(SegmentDecodeError):
        decode_segment(segment)


@pytest.mark.parametrize(
    "segment",
    [
        "YR",        # "YQ" with a stray low bit
        "YWJ",       # "YWI" with a stray low bit
        "-_9",       # "-_8" with a stray low bit
    ],
)
def test_decode_rejects_non_canonical_trailing_bits(segment):
    with pytest.raises(SegmentDecodeError):
        decode_segment(segment)


def test_loads_segment_rejects_deep_nesting():
    with pytest.raises(JWTError):
        loads_segment(encode_segment(b"[" * 100_000))

    with pytest.raises(JWTError):
        loads_segment(encode_segment(b'{"a":' * 100_000))
