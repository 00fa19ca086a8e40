from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Type

from ...adapters.encoding.json_codec import loads_segment
from ...domain.constants import HEADER_ALGORITHM, ValidationFlag
from ...domain.entities import Token
from ...domain.exceptions import JWTError, ValidationError
from ...domain.ports import Clock, KeyFunc
from ...domain.value_objects import MapClaims
from ..registry import SigningMethodRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Parser:
    """
    Application use case: turn a compact token string into a verified Token.

    Stages, in order:
      1. split into three segments            -> MALFORMED, stop
      2. decode the header                    -> MALFORMED, stop
      3. decode the claims                    -> MALFORMED, stop
      4. resolve `alg` in the registry        -> UNVERIFIABLE, stop
      5. ask `key_func` for the key           -> UNVERIFIABLE, stop
      6. verify the signature                 -> SIGNATURE_INVALID, continue
      7. validate the claims                  -> claim flags
      8. valid iff no flag is set

    A bad signature does not stop claims validation, so the caller sees
    every problem with the token at once. The algorithm is only ever taken
    from the registry; an unknown `alg` (including "none") is never trusted.

    - registry:               where `alg` is looked up
    - clock:                  time source passed to claims validation
    - valid_methods:          if set, only these `alg` values are accepted
    - skip_claims_validation: stop after the signature check
    """

    registry: SigningMethodRegistry = field(default_factory=lambda: default_registry)
    clock: Clock = time.time
    valid_methods: Optional[Sequence[str]] = None
    skip_claims_validation: bool = False

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def parse(self, token_string: str, key_func: Optional[KeyFunc]) -> Token:
        """
        Parse and verify `token_string` into MapClaims.

        Returns:
            The token, with `valid` set.

        Raises:
            ValidationError, with `.token` holding whatever could be decoded.
        """
        return self.parse_with_claims(token_string, MapClaims, key_func)

    def parse_with_claims(
            self,
            token_string: str,
            claims_type: Type[Any],
            key_func: Optional[KeyFunc],
    ) -> Token:
        """Like `parse`, decoding the payload with `claims_type.from_dict`."""
        token, parts = self.parse_unverified(token_string, claims_type)

        if self.valid_methods is not None and token.alg not in self.valid_methods:
            raise self._fail(
                token,
                ValidationFlag.SIGNATURE_INVALID,
                f"signing method {token.alg} is invalid",
            )

        # ---- Key ----------------------------------------------------------
        if key_func is None:
            raise self._fail(token, ValidationFlag.UNVERIFIABLE, "no key_func was provided")

        try:
            key = key_func(token)
        except ValidationError as exc:
            exc.token = token
            raise
        except Exception as exc:
            raise self._fail(token, ValidationFlag.UNVERIFIABLE, "error while executing key_func", inner=exc) from exc

        v_err = ValidationError(token=token)

        # ---- Signature ----------------------------------------------------
        token.signature = parts[2]
        try:
            token.method.verify(".".join(parts[:2]), token.signature, key)
        except Exception as exc:
            v_err.add(ValidationFlag.SIGNATURE_INVALID, exc)

        # ---- Claims -------------------------------------------------------
        if not self.skip_claims_validation:
            try:
                token.claims.valid(self.clock)
            except ValidationError as exc:
                v_err.add(exc.errors, exc.inner if exc.inner is not None else (exc if exc.text else None))
            except Exception as exc:
                v_err.add(ValidationFlag.CLAIMS_INVALID, exc)

        token.valid = v_err.valid
        if not token.valid:
            logger.debug("Token rejected: %s (%s)", v_err, _flag_names(v_err.errors))
            raise v_err
        return token

    def parse_unverified(
            self,
            token_string: str,
            claims_type: Type[Any] = MapClaims,
    ) -> Tuple[Token, List[str]]:
        """
        Decode a token without checking its signature or claims.

        Only useful when the key must be chosen from the token contents
        before verification. Never trust the result on its own.

        Returns:
            (token, [header, claims, signature] segments)

        Raises:
            ValidationError with MALFORMED or UNVERIFIABLE.
        """
        parts = token_string.split(".")
        if len(parts) != 3:
            raise self._fail(None, ValidationFlag.MALFORMED, "token contains an invalid number of segments")

        token = Token(method=None, raw=token_string)

        # ---- Header -------------------------------------------------------
        try:
            token.header = loads_segment(parts[0])
        except JWTError as exc:
            if token_string[:7].lower() == "bearer ":
                raise self._fail(token, ValidationFlag.MALFORMED, "token string should not contain 'bearer '")
            raise self._fail(token, ValidationFlag.MALFORMED, "could not decode header", inner=exc) from exc

        # ---- Claims -------------------------------------------------------
        try:
            token.claims = claims_type.from_dict(loads_segment(parts[1]))
        except (JWTError, ValueError, TypeError) as exc:
            raise self._fail(token, ValidationFlag.MALFORMED, "could not decode claims", inner=exc) from exc

        # ---- Signing method ----------------------------------------------
        alg = token.header.get(HEADER_ALGORITHM)
        method = self.registry.resolve(alg) if isinstance(alg, str) else None
        if method is None:
            raise self._fail(token, ValidationFlag.UNVERIFIABLE, "signing method (alg) is unavailable")
        token.method = method

        return token, parts

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _fail(
            token: Optional[Token],
            flag: ValidationFlag,
            text: str,
            inner: Optional[BaseException] = None,
    ) -> ValidationError:
        logger.debug("Token rejected: %s (%s)", text, _flag_names(flag))
        return ValidationError(text, flag, inner=inner, token=token)


def _flag_names(flags: ValidationFlag) -> str:
    return "|".join(f.name for f in ValidationFlag if f & flags) or "none"


_default_parser = Parser()


def parse(token_string: str, key_func: Optional[KeyFunc]) -> Token:
    """Parse with the process-wide registry and the system clock."""
    return _default_parser.parse(token_string, key_func)


def parse_with_claims(token_string: str, claims_type: Type[Any], key_func: Optional[KeyFunc]) -> Token:
    return _default_parser.parse_with_claims(token_string, claims_type, key_func)
