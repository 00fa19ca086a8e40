from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..adapters.encoding.json_codec import dumps_segment
from .constants import HEADER_ALGORITHM, HEADER_TYPE, TOKEN_TYPE
from .exceptions import JWTError
from .ports import Claims, SigningMethod
from .value_objects import MapClaims


@dataclass(slots=True)
class Token:
    """
    A signed token.

    Which fields are populated depends on the direction:
      - issuing: method, header and claims; call `signed_string(key)`
      - parsing: additionally raw, signature and valid, set by the Parser
    """
    method: Optional[SigningMethod]
    header: Dict[str, Any] = field(default_factory=dict)
    claims: Claims = field(default_factory=MapClaims)

    raw: str = ""
    signature: str = ""
    valid: bool = False

    @classmethod
    def create(cls, method: SigningMethod, claims: Optional[Claims] = None) -> "Token":
        """New token for issuing, with the `typ` and `alg` headers filled in."""
        return cls(
            method=method,
            header={HEADER_TYPE: TOKEN_TYPE, HEADER_ALGORITHM: method.alg},
            claims=claims if claims is not None else MapClaims(),
        )

    # ---- Read-only shortcuts ---------------------------------------------

    @property
    def alg(self) -> Optional[str]:
        return self.header.get(HEADER_ALGORITHM)

    @property
    def kid(self) -> Optional[str]:
        return self.header.get("kid")

    # ---- Encoding ----------------------------------------------------------

    def signing_string(self) -> str:
        """
        `<header>.<claims>`, each JSON-serialized and base64url-encoded.

        This is the exact text the signature covers.
        """
        return ".".join((dumps_segment(self.header), dumps_segment(self.claims.to_dict())))

    def signed_string(self, key: Any) -> str:
        """
        The complete compact token, signed with `key`.

        Raises whatever serialization or the signing method raises.
        """
        if self.method is None:
            raise JWTError("token has no signing method")
        signing_string = self.signing_string()
        signature = self.method.sign(signing_string, key)
        return ".".join((signing_string, signature))
