from enum import IntFlag


class ValidationFlag(IntFlag):
    """
    Error categories reported by the parser.

    Several flags can be set at once; an empty set means the token is valid.
    """
    MALFORMED = 1 << 0           # token could not be decoded
    UNVERIFIABLE = 1 << 1        # no usable signing method or key
    SIGNATURE_INVALID = 1 << 2   # signature did not match

    # Standard claim validation errors
    AUDIENCE = 1 << 3
    EXPIRED = 1 << 4
    ISSUED_AT = 1 << 5
    ISSUER = 1 << 6
    NOT_VALID_YET = 1 << 7
    ID = 1 << 8
    CLAIMS_INVALID = 1 << 9      # generic error from custom claim types


NO_ERRORS = ValidationFlag(0)

TOKEN_TYPE = "JWT"
HEADER_TYPE = "typ"
HEADER_ALGORITHM = "alg"
