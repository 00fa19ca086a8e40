from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Protocol, TypeVar

if TYPE_CHECKING:
    from .entities import Token

# Zero-argument callable returning seconds since the epoch (e.g. time.time).
Clock = Callable[[], float]

# Receives the decoded but unverified token and returns the verification key.
KeyFunc = Callable[["Token"], Any]


class SigningMethod(Protocol):
    """
    Port for a signature algorithm (HS256, RS256, ...).

    Implementations live in the adapters layer.
    """

    @property
    def alg(self) -> str:
        """Algorithm identifier written to the `alg` header."""
        ...

    def sign(self, signing_string: str, key: Any) -> str:
        """
        Sign `signing_string` and return the encoded signature segment.

        Raises:
          - InvalidKeyTypeError
          - HashUnavailableError
        """
        ...

    def verify(self, signing_string: str, signature: str, key: Any) -> None:
        """
        Check `signature` against `signing_string`; return None on success.

        Raises:
          - SegmentDecodeError
          - InvalidKeyTypeError
          - HashUnavailableError
          - SignatureInvalidError
        """
        ...


class Claims(Protocol):
    """
    Anything that can be carried as the token payload.

    `valid` raises ValidationError when the claims are not acceptable at the
    instant reported by `clock`.
    """

    def valid(self, clock: Clock = ...) -> None:
        ...

    def to_dict(self) -> Dict[str, Any]:
        ...


C = TypeVar("C", bound="Claims", covariant=True)


class ClaimsType(Protocol[C]):
    """A claims class the parser can build from a decoded payload."""

    def from_dict(self, data: Mapping[str, Any]) -> C:
        ...


SigningMethodFactory = Callable[[], SigningMethod]
