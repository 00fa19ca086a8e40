from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Type

from ...application.registry import SigningMethodRegistry, default_registry
from ...application.use_cases.issue import IssueTokenUseCase
from ...application.use_cases.parse import Parser
from ...domain.constants import ValidationFlag
from ...domain.entities import Token
from ...domain.exceptions import InvalidAudienceError, InvalidIssuerError, ValidationError
from ...domain.ports import KeyFunc, SigningMethod
from ...domain.value_objects import MapClaims
from ...settings import JWTSettings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenVerifier:
    """
    Framework-agnostic verification facade.

    Integrations (FastAPI, CLI, etc.) adapt this to their own dependency
    systems. On top of the parser it requires the `iss` / `aud` claims to
    match when `issuer` / `audience` are configured.
    """

    parser: Parser
    key_func: KeyFunc
    claims_type: Type[Any] = MapClaims
    issuer: Optional[str] = None
    audience: Optional[str] = None

    def verify(self, token_string: str) -> Token:
        """Token string -> verified Token (or raise ValidationError)."""
        token = self.parser.parse_with_claims(token_string, self.claims_type, self.key_func)

        v_err = ValidationError(token=token)
        if self.issuer is not None and not token.claims.verify_issuer(self.issuer, True):
            v_err.add(ValidationFlag.ISSUER, InvalidIssuerError("token has an unexpected issuer"))
        if self.audience is not None and not token.claims.verify_audience(self.audience, True):
            v_err.add(ValidationFlag.AUDIENCE, InvalidAudienceError("token is not intended for this audience"))

        if not v_err.valid:
            token.valid = False
            logger.debug("Token rejected: %s", v_err)
            raise v_err
        return token


def _resolve(registry: SigningMethodRegistry, alg: str) -> SigningMethod:
    method = registry.resolve(alg)
    if method is None:
        raise ValueError(f"Unknown signing algorithm: {alg!r}")
    return method


def create_token_verifier(
        settings: JWTSettings,
        *,
        registry: Optional[SigningMethodRegistry] = None,
        claims_type: Type[Any] = MapClaims,
) -> TokenVerifier:
    """
    High-level factory: JWTSettings -> TokenVerifier.

    - restricts `alg` to the configured methods
    - hands the shared secret to every accepted token
    """
    if registry is None:
        registry = default_registry
    for alg in settings.accepted_methods:
        _resolve(registry, alg)

    secret = settings.secret

    def key_func(token: Token) -> bytes:
        return secret

    parser = Parser(registry=registry, valid_methods=settings.accepted_methods)
    return TokenVerifier(
        parser=parser,
        key_func=key_func,
        claims_type=claims_type,
        issuer=settings.issuer,
        audience=settings.audience,
    )


def create_token_issuer(
        settings: JWTSettings,
        *,
        registry: Optional[SigningMethodRegistry] = None,
) -> IssueTokenUseCase:
    """JWTSettings -> IssueTokenUseCase signing with the configured algorithm."""
    method = _resolve(default_registry if registry is None else registry, settings.algorithm)
    return IssueTokenUseCase(method=method, key=settings.secret)
