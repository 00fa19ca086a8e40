from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials

from .security import DEFAULT_COOKIE_NAME, bearer_scheme, extract_token_from_request
from ..common.verifier_factory import TokenVerifier
from ...domain.constants import ValidationFlag
from ...domain.entities import Token
from ...domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _unauthorized(exc: ValidationError) -> HTTPException:
    detail = "Token expired" if exc.errors == ValidationFlag.EXPIRED else str(exc)
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass(slots=True)
class FastAPIAuthorization:
    """
    FastAPI integration for pkg_jwt.

    Exposes dependencies built on the framework-agnostic TokenVerifier:

        get_current_token       -> Token, or 401
        get_optional_token      -> Token or None
        require_subject(...)    -> Token whose `sub` is one of the given values, or 403
    """

    verifier: TokenVerifier
    cookie_name: str = DEFAULT_COOKIE_NAME

    # ------------------------------------------------------------------ #
    # Base dependencies
    # ------------------------------------------------------------------ #

    async def get_current_token(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> Token:
        """Dependency: Require a valid token."""
        token_string = extract_token_from_request(request, credentials, self.cookie_name)
        try:
            return self.verifier.verify(token_string)
        except ValidationError as exc:
            logger.info("Rejected token on %s: %s", request.url.path, exc)
            raise _unauthorized(exc) from exc

    async def get_optional_token(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> Token | None:
        """Dependency: Optional authentication."""
        try:
            token_string = extract_token_from_request(request, credentials, self.cookie_name)
        except HTTPException:
            # no token anywhere -> anonymous
            return None

        try:
            return self.verifier.verify(token_string)
        except ValidationError:
            # bad token -> treat as anonymous
            return None

    # ------------------------------------------------------------------ #
    # Authorization dependency factories
    # ------------------------------------------------------------------ #

    def require_subject(self, *subjects: str) -> Callable:
        """
        Dependency factory: require the `sub` claim to be one of `subjects`.
        """
        allowed = frozenset(subjects)

        async def dependency(
                token: Token = Depends(self.get_current_token),
        ) -> Token:
            subject = token.claims.to_dict().get("sub")
            if subject not in allowed:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Subject not allowed: {subject!r}",
                )
            return token

        return dependency
