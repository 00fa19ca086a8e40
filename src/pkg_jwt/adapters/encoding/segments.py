from __future__ import annotations

import base64
import binascii
import re

from ...domain.exceptions import SegmentDecodeError

_SEGMENT_RE = re.compile(r"[A-Za-z0-9_-]*")


def encode_segment(data: bytes) -> str:
    """base64url-encode `data` with the `=` padding stripped."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode_segment(segment: str) -> bytes:
    """
    Decode an unpadded base64url segment.

    Padding is restored before decoding since tokens never carry `=`.
    Only the canonical encoding is accepted: the unused low bits of the
    last character must be zero, so no two segments decode to the same
    bytes.

    Raises:
        SegmentDecodeError on characters outside the url-safe alphabet, on
        a length no encoder can produce, or on non-zero trailing bits.
    """
    if not _SEGMENT_RE.fullmatch(segment):
        raise SegmentDecodeError("illegal base64url data: unexpected characters")

    if len(segment) % 4 == 1:
        raise SegmentDecodeError("illegal base64url data: invalid segment length")

    padded = segment + "=" * (-len(segment) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise SegmentDecodeError(f"illegal base64url data: {exc}") from exc

    if encode_segment(data) != segment:
        raise SegmentDecodeError("illegal base64url data: non-canonical trailing bits")
    return data
