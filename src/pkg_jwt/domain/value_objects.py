# src/pkg_jwt/domain/value_objects.py

from __future__ import annotations

import hmac
import math
import time
from dataclasses import MISSING, dataclass, field, fields
from datetime import timedelta
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .constants import ValidationFlag
from .exceptions import (
    TokenExpiredError,
    TokenNotValidYetError,
    TokenUsedBeforeIssuedError,
    ValidationError,
)
from .ports import Clock


# --- Claim checks ---------------------------------------------------------
#
# Every check treats the unset value (0 or "") as valid unless `required`.


def _constant_time_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def verify_exp(exp: int, now: int, required: bool) -> bool:
    if not exp:
        return not required
    return now <= exp


def verify_iat(iat: int, now: int, required: bool) -> bool:
    if not iat:
        return not required
    return now >= iat


def verify_nbf(nbf: int, now: int, required: bool) -> bool:
    if not nbf:
        return not required
    return now >= nbf


def verify_iss(iss: str, cmp: str, required: bool) -> bool:
    if not iss:
        return not required
    return _constant_time_equal(iss, cmp)


def verify_aud(aud: Union[str, Iterable[str], None], cmp: str, required: bool) -> bool:
    """
    A string `aud` must equal `cmp`; a list matches if any entry does.

    Every entry is compared, so timing does not depend on match position.
    """
    if not aud:
        return not required
    if isinstance(aud, str):
        return _constant_time_equal(aud, cmp)

    matched = False
    for value in aud:
        if not isinstance(value, str):
            return False
        matched |= _constant_time_equal(value, cmp)
    return matched


def _elapsed(seconds: int) -> timedelta:
    # Saturates at timedelta.max for timestamps far outside its range.
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        return timedelta.max


class _TimeClaimsValidation:
    """
    `valid()` shared by the claim sets below.

    Only exp, iat and nbf are checked, all optional. There is no allowance
    for clock skew. When several checks fail every flag is set but only the
    last failure is kept as the cause.
    """

    __slots__ = ()

    def valid(self, clock: Clock = time.time) -> None:
        now = int(clock())
        v_err = ValidationError()

        if not self.verify_expires_at(now, False):
            delta = _elapsed(now - self._expires_at_value())
            v_err.add(ValidationFlag.EXPIRED, TokenExpiredError(f"token is expired by {delta}"))

        if not self.verify_issued_at(now, False):
            v_err.add(ValidationFlag.ISSUED_AT, TokenUsedBeforeIssuedError("token used before issued"))

        if not self.verify_not_before(now, False):
            v_err.add(ValidationFlag.NOT_VALID_YET, TokenNotValidYetError("token is not valid yet"))

        if not v_err.valid:
            raise v_err


# --- Standard claims ------------------------------------------------------


def claim(name: str, default: Any = MISSING, *, omitempty: bool = True, **kwargs: Any) -> Any:
    """
    Declare a dataclass field serialized under the JSON key `name`.

    With `omitempty`, falsy values ("" / 0 / None / empty containers) are
    left out of the payload instead of being written as null.
    """
    metadata = {"claim": name, "omitempty": omitempty}
    if default is MISSING:
        return field(metadata=metadata, **kwargs)
    return field(default=default, metadata=metadata, **kwargs)


_TYPE_CHECKS = {"str": str, str: str, "int": int, int: int}


def _check_type(key: str, declared: Any, value: Any) -> Any:
    expected = _TYPE_CHECKS.get(declared)
    if expected is None:
        return value
    if expected is int and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValueError(f"claim {key!r} must be an integer, got {type(value).__name__}")
    if expected is str and not isinstance(value, str):
        raise ValueError(f"claim {key!r} must be a string, got {type(value).__name__}")
    return value


@dataclass(slots=True)
class StandardClaims(_TimeClaimsValidation):
    """
    Registered claims from RFC 7519 section 4.1.

    Timestamps are integer seconds since the epoch; 0 and "" mean unset.
    Subclass and declare extra fields with `claim()` to carry your own
    claims alongside these.
    """
    audience: str = claim("aud", "")
    expires_at: int = claim("exp", 0)
    id: str = claim("jti", "")
    issued_at: int = claim("iat", 0)
    issuer: str = claim("iss", "")
    not_before: int = claim("nbf", 0)
    subject: str = claim("sub", "")

    # ---- serialization ---------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.metadata.get("omitempty", False) and not value:
                continue
            data[f.metadata.get("claim", f.name)] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StandardClaims":
        """
        Build claims from a decoded payload.

        Unknown keys are ignored and null leaves the default in place.
        Raises ValueError when a str/int field holds another JSON type.
        """
        by_key = {f.metadata.get("claim", f.name): f for f in fields(cls) if f.init}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            f = by_key.get(key)
            if f is None or value is None:
                continue
            kwargs[f.name] = _check_type(key, f.type, value)
        return cls(**kwargs)

    # ---- checks ----------------------------------------------------------

    def _expires_at_value(self) -> int:
        return self.expires_at

    def verify_audience(self, cmp: str, required: bool = False) -> bool:
        return verify_aud(self.audience, cmp, required)

    def verify_expires_at(self, cmp: int, required: bool = False) -> bool:
        return verify_exp(self.expires_at, cmp, required)

    def verify_issued_at(self, cmp: int, required: bool = False) -> bool:
        return verify_iat(self.issued_at, cmp, required)

    def verify_issuer(self, cmp: str, required: bool = False) -> bool:
        return verify_iss(self.issuer, cmp, required)

    def verify_not_before(self, cmp: int, required: bool = False) -> bool:
        return verify_nbf(self.not_before, cmp, required)


# --- Open mapping claims --------------------------------------------------


def _numeric(value: Any) -> int:
    """Timestamp from a decoded JSON value; non-numeric or non-finite counts as unset."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


class MapClaims(dict, _TimeClaimsValidation):
    """
    Claims as a plain JSON object.

    Default claims type for parsing when no structured type is given.
    """

    __slots__ = ()

    def to_dict(self) -> Dict[str, Any]:
        return dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapClaims":
        return cls(data)

    def _str_claim(self, key: str) -> str:
        value = self.get(key)
        return value if isinstance(value, str) else ""

    def _expires_at_value(self) -> int:
        return _numeric(self.get("exp"))

    def verify_audience(self, cmp: str, required: bool = False) -> bool:
        aud: Optional[Any] = self.get("aud")
        if aud is not None and not isinstance(aud, (str, list)):
            return False
        return verify_aud(aud, cmp, required)

    def verify_expires_at(self, cmp: int, required: bool = False) -> bool:
        return verify_exp(_numeric(self.get("exp")), cmp, required)

    def verify_issued_at(self, cmp: int, required: bool = False) -> bool:
        return verify_iat(_numeric(self.get("iat")), cmp, required)

    def verify_issuer(self, cmp: str, required: bool = False) -> bool:
        return verify_iss(self._str_claim("iss"), cmp, required)

    def verify_not_before(self, cmp: int, required: bool = False) -> bool:
        return verify_nbf(_numeric(self.get("nbf")), cmp, required)
