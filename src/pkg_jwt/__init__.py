"""
pkg_jwt

Compact signed tokens (JWT / JWS compact serialization): issuing, parsing
and verification with pluggable signing methods, plus claim validation.
Framework integrations (FastAPI) sit on top of the same core.
"""

__version__ = "0.1.0"

from .domain.constants import ValidationFlag
from .domain.entities import Token
from .domain.exceptions import (
    JWTError,
    InvalidKeyError,
    InvalidKeyTypeError,
    HashUnavailableError,
    SignatureInvalidError,
    SegmentDecodeError,
    ValidationError,
    ClaimError,
    TokenExpiredError,
    TokenUsedBeforeIssuedError,
    TokenNotValidYetError,
    InvalidAudienceError,
    InvalidIssuerError,
)
from .domain.value_objects import StandardClaims, MapClaims, claim
from .domain.ports import Claims, SigningMethod, KeyFunc, Clock

from .adapters.encoding.segments import encode_segment, decode_segment
from .application.registry import (
    SigningMethodRegistry,
    default_registry,
    register_signing_method,
    get_signing_method,
)

# HMAC family (registers HS256/HS384/HS512 on import)
from .adapters.hmac_sha.signing_method import SigningMethodHMAC, HS256, HS384, HS512

from .application.use_cases.parse import Parser, parse, parse_with_claims
from .application.use_cases.issue import IssueTokenUseCase

__all__ = [
    "__version__",
    # domain core
    "Token",
    "StandardClaims",
    "MapClaims",
    "claim",
    "Claims",
    "SigningMethod",
    "KeyFunc",
    "Clock",
    "ValidationFlag",
    # exceptions
    "JWTError",
    "InvalidKeyError",
    "InvalidKeyTypeError",
    "HashUnavailableError",
    "SignatureInvalidError",
    "SegmentDecodeError",
    "ValidationError",
    "ClaimError",
    "TokenExpiredError",
    "TokenUsedBeforeIssuedError",
    "TokenNotValidYetError",
    "InvalidAudienceError",
    "InvalidIssuerError",
    # segments & registry
    "encode_segment",
    "decode_segment",
    "SigningMethodRegistry",
    "default_registry",
    "register_signing_method",
    "get_signing_method",
    # signing methods
    "SigningMethodHMAC",
    "HS256",
    "HS384",
    "HS512",
    # use cases
    "Parser",
    "parse",
    "parse_with_claims",
    "IssueTokenUseCase",
]
