from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from ...domain.exceptions import JWTError
from .segments import decode_segment, encode_segment


def dumps_segment(data: Mapping[str, Any]) -> str:
    """
    Serialize a header or claims mapping into an encoded token segment.

    Keys keep their insertion order; the signing string is recomputed from
    the same text on both sides, so byte order only has to be stable.
    """
    try:
        text = json.dumps(dict(data), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise JWTError(f"cannot serialize token segment: {exc}") from exc
    return encode_segment(text.encode("utf-8"))


def loads_segment(segment: str) -> Dict[str, Any]:
    """
    Decode an encoded token segment back into a JSON object.

    Raises:
        SegmentDecodeError if the segment is not base64url
        JWTError if it does not hold a JSON object, including JSON nested
        deeper than the interpreter can decode
    """
    raw = decode_segment(segment)
    try:
        value = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise JWTError(f"invalid JSON in token segment: {exc}") from exc
    except RecursionError as exc:
        raise JWTError("invalid JSON in token segment: nested too deeply") from exc

    if not isinstance(value, dict):
        raise JWTError(f"token segment must be a JSON object, got {type(value).__name__}")
    return value
