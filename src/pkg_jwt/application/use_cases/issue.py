from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from ...domain.entities import Token
from ...domain.exceptions import JWTError
from ...domain.ports import Claims, SigningMethod
from ...domain.value_objects import MapClaims


@dataclass(slots=True)
class IssueTokenUseCase:
    """
    Application use case:
    - Wrap claims in a Token bound to `method`
    - Sign it with `key` and return the compact string

    `extra_headers` are merged into the header (e.g. {"kid": "2024-01"});
    `typ` and `alg` always come from the method.
    """

    method: SigningMethod
    key: Any
    extra_headers: Dict[str, Any] = field(default_factory=dict)

    def execute(self, claims: Union[Claims, Mapping[str, Any], None] = None) -> str:
        """
        Issue a signed token.

        Raises:
            InvalidKeyTypeError
            HashUnavailableError
            JWTError
        """
        token = Token.create(self.method, self._as_claims(claims))
        for name, value in self.extra_headers.items():
            token.header.setdefault(name, value)

        try:
            return token.signed_string(self.key)
        except JWTError:
            # let callers distinguish these explicitly
            raise
        except Exception as exc:
            raise JWTError(f"Token signing failed: {exc}") from exc

    @staticmethod
    def _as_claims(claims: Union[Claims, Mapping[str, Any], None]) -> Optional[Claims]:
        if claims is None or hasattr(claims, "valid"):
            return claims
        return MapClaims(claims)
