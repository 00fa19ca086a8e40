import pytest

from pkg_jwt import HS256, StandardClaims, Token

NOW = 1_700_000_000


@pytest.fixture
def secret() -> bytes:
    return b"s3cr3t"


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def make_token(secret):
    def _make(claims=None, method=HS256, key=None):
        token = Token.create(method, claims if claims is not None else StandardClaims())
        return token.signed_string(secret if key is None else key)

    return _make
