from __future__ import annotations

from .deps import FastAPIAuthorization
from ..common.verifier_factory import TokenVerifier, create_token_verifier
from ...settings import JWTSettings


def create_fastapi_auth(settings: JWTSettings) -> FastAPIAuthorization:
    """
    High-level helper for FastAPI apps:

    - Creates a TokenVerifier from JWTSettings
    - Wraps it in FastAPIAuthorization, exposing dependencies like:

        fastapi_auth.get_current_token
        fastapi_auth.get_optional_token
        fastapi_auth.require_subject(...)
    """
    verifier: TokenVerifier = create_token_verifier(settings)
    return FastAPIAuthorization(verifier=verifier)


__all__ = ["FastAPIAuthorization", "create_fastapi_auth"]
