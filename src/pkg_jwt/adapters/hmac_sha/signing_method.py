import hashlib
import hmac
from dataclasses import dataclass
from typing import Any

from ...application.registry import register_signing_method
from ...domain.exceptions import (
    HashUnavailableError,
    InvalidKeyTypeError,
    SignatureInvalidError,
)
from ...domain.ports import SigningMethod
from ..encoding.segments import decode_segment, encode_segment


@dataclass(frozen=True, slots=True)
class SigningMethodHMAC(SigningMethod):
    """
    HMAC-SHA signing methods (HS256, HS384, HS512).

    Keys are raw secret bytes for both signing and verification.
    """

    name: str
    hash_name: str

    @property
    def alg(self) -> str:
        return self.name

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def sign(self, signing_string: str, key: Any) -> str:
        return encode_segment(self._mac(signing_string, key))

    def verify(self, signing_string: str, signature: str, key: Any) -> None:
        sig = decode_segment(signature)
        key_bytes = self._key_bytes(key)

        # Symmetric: recompute the MAC and compare in constant time.
        if not hmac.compare_digest(sig, self._mac(signing_string, key_bytes)):
            raise SignatureInvalidError()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @property
    def available(self) -> bool:
        return self.hash_name in hashlib.algorithms_available

    @staticmethod
    def _key_bytes(key: Any) -> bytes:
        if not isinstance(key, (bytes, bytearray)):
            raise InvalidKeyTypeError()
        return bytes(key)

    def _mac(self, signing_string: str, key: Any) -> bytes:
        key_bytes = self._key_bytes(key)
        if not self.available:
            raise HashUnavailableError()
        return hmac.new(key_bytes, signing_string.encode("utf-8"), self.hash_name).digest()


HS256 = SigningMethodHMAC("HS256", "sha256")
HS384 = SigningMethodHMAC("HS384", "sha384")
HS512 = SigningMethodHMAC("HS512", "sha512")

for _method in (HS256, HS384, HS512):
    register_signing_method(_method.alg, lambda m=_method: m)
