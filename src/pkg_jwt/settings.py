from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True)
class JWTSettings:
    """
    Signing / verification settings for an HMAC-protected service.

    Host code decides how to construct this (env, config file, etc.).
    """
    secret: bytes = field(repr=False)
    algorithm: str = "HS256"

    # Claims every accepted token must carry
    issuer: Optional[str] = None
    audience: Optional[str] = None

    # Accepted `alg` values when verifying; empty means "algorithm only"
    valid_methods: List[str] = field(default_factory=list)

    @property
    def accepted_methods(self) -> List[str]:
        return list(self.valid_methods) or [self.algorithm]


def settings_from_env() -> JWTSettings:
    def _optional(key: str) -> Optional[str]:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    def _split_csv(key: str) -> list[str]:
        raw = os.getenv(key)
        if not raw:
            return []
        return [x.strip() for x in raw.split(",") if x and x.strip()]

    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise RuntimeError("Missing JWT settings: JWT_SECRET")

    return JWTSettings(
        secret=secret.encode("utf-8"),
        algorithm=_optional("JWT_ALGORITHM") or "HS256",
        issuer=_optional("JWT_ISSUER"),
        audience=_optional("JWT_AUDIENCE"),
        valid_methods=_split_csv("JWT_VALID_METHODS"),
    )
