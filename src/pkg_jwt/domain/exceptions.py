from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .constants import NO_ERRORS, ValidationFlag

if TYPE_CHECKING:
    from .entities import Token


class JWTError(Exception):
    """Base class for every error raised by pkg_jwt."""
    pass


class InvalidKeyError(JWTError):
    """Raised when key material is unusable."""

    def __init__(self, message: str = "key is invalid") -> None:
        super().__init__(message)


class InvalidKeyTypeError(InvalidKeyError):
    """Raised when a signing method receives a key of the wrong type."""

    def __init__(self, message: str = "key is of invalid type") -> None:
        super().__init__(message)


class HashUnavailableError(JWTError):
    """Raised when the hash backing a signing method is not available."""

    def __init__(self, message: str = "the requested hash function is unavailable") -> None:
        super().__init__(message)


class SignatureInvalidError(JWTError):
    """Raised when a signature does not match the signing string."""

    def __init__(self, message: str = "signature is invalid") -> None:
        super().__init__(message)


class SegmentDecodeError(JWTError):
    """Raised when a token segment is not valid unpadded base64url."""
    pass


class ValidationError(JWTError):
    """
    Aggregate result of parsing and validating a token.

    - errors: bit-set of ValidationFlag values; empty means valid
    - inner:  the most recent underlying cause (only one is kept)
    - text:   plain message used when there is no inner cause
    - token:  the token as far as it could be decoded, for introspection

    Branch on `errors`, not on the message.
    """

    def __init__(
            self,
            text: str = "",
            errors: ValidationFlag = NO_ERRORS,
            inner: Optional[BaseException] = None,
            token: Optional["Token"] = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.errors = ValidationFlag(errors)
        self.inner = inner
        self.token = token

    def __str__(self) -> str:
        if self.inner is not None:
            return str(self.inner)
        if self.text:
            return self.text
        return "token is invalid"

    def __repr__(self) -> str:
        return f"ValidationError({str(self)!r}, errors={self.errors!r})"

    @property
    def valid(self) -> bool:
        return self.errors == NO_ERRORS

    @property
    def flag_names(self) -> List[str]:
        return [flag.name for flag in ValidationFlag if flag & self.errors]

    def has(self, flag: ValidationFlag) -> bool:
        return bool(self.errors & flag)

    def add(self, flag: ValidationFlag, inner: Optional[BaseException] = None) -> None:
        """Set `flag` and, when given, replace the stored cause."""
        self.errors |= flag
        if inner is not None:
            self.inner = inner


# --- Claim errors ----------------------------------------------------------


class ClaimError(JWTError):
    """Base class for semantic claim failures; stored as ValidationError.inner."""
    pass


class TokenExpiredError(ClaimError):
    """Raised when the `exp` claim is in the past."""
    pass


class TokenUsedBeforeIssuedError(ClaimError):
    """Raised when the `iat` claim is in the future."""
    pass


class TokenNotValidYetError(ClaimError):
    """Raised when the `nbf` claim is in the future."""
    pass


class InvalidAudienceError(ClaimError):
    """Raised when the `aud` claim does not name the expected audience."""
    pass


class InvalidIssuerError(ClaimError):
    """Raised when the `iss` claim does not match the expected issuer."""
    pass
