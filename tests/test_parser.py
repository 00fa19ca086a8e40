import json
import time

import pytest

from pkg_jwt import (
    HS256,
    HS384,
    HS512,
    MapClaims,
    Parser,
    SignatureInvalidError,
    SigningMethodRegistry,
    StandardClaims,
    Token,
    TokenExpiredError,
    ValidationError,
    ValidationFlag,
    decode_segment,
    encode_segment,
    parse,
    parse_with_claims,
)

NOW = 1_700_000_000


def key_of(secret):
    return lambda token: secret


def _segment(data):
    return encode_segment(json.dumps(data).encode())


@pytest.fixture
def parser(clock):
    return Parser(clock=clock)


# --- Round trip -----------------------------------------------------------


@pytest.mark.parametrize("method", [HS256, HS384, HS512])
def test_round_trip_standard_claims(parser, make_token, secret, method):
    claims = StandardClaims(
        audience="api",
        expires_at=NOW + 60,
        id="jti-1",
        issued_at=NOW,
        issuer="svc-a",
        not_before=NOW - 60,
        subject="alice",
    )
    signed = make_token(claims, method=method)

    token = parser.parse_with_claims(signed, StandardClaims, key_of(secret))

    assert token.valid is True
    assert token.claims == claims
    assert token.method is method
    assert token.raw == signed
    assert token.signature == signed.split(".")[2]
    assert token.header == {"typ": "JWT", "alg": method.alg}


def test_round_trip_map_claims(parser, make_token, secret):
    claims = MapClaims({"sub": "alice", "roles": ["admin"], "exp": NOW + 1})
    token = parser.parse(make_token(claims), key_of(secret))
    assert token.valid
    assert token.claims == claims
    assert isinstance(token.claims, MapClaims)


def test_issuer_scenario(make_token):
    signed = make_token(StandardClaims(issuer="svc-a", expires_at=int(time.time()) + 3600))

    token = parse_with_claims(signed, StandardClaims, lambda t: b"s3cr3t")
    assert token.valid is True
    assert token.claims.issuer == "svc-a"

    with pytest.raises(ValidationError) as exc_info:
        parse_with_claims(signed, StandardClaims, lambda t: b"wrong-secret")
    err = exc_info.value
    assert err.has(ValidationFlag.SIGNATURE_INVALID)
    assert err.token.valid is False
    assert err.token.claims.issuer == "svc-a"


def test_module_level_parse(make_token, secret):
    token = parse(make_token(MapClaims({"sub": "alice"})), key_of(secret))
    assert token.valid
    assert token.claims["sub"] == "alice"


# --- Tampering ------------------------------------------------------------


def test_any_flipped_signature_byte_is_rejected(parser, make_token, secret):
    signed = make_token(StandardClaims(subject="alice"))
    head, body, signature = signed.split(".")
    raw = decode_segment(signature)

    for i in range(len(raw)):
        flipped = raw[:i] + bytes([raw[i] ^ 0x01]) + raw[i + 1:]
        tampered = ".".join((head, body, encode_segment(flipped)))

        with pytest.raises(ValidationError) as exc_info:
            parser.parse(tampered, key_of(secret))
        assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID
        assert exc_info.value.token.valid is False


_B64URL = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


@pytest.mark.parametrize("method", [HS256, HS384, HS512])
def test_any_changed_signature_character_is_rejected(parser, make_token, secret, method):
    signed = make_token(StandardClaims(subject="alice"), method=method)
    head, body, signature = signed.split(".")

    for i, char in enumerate(signature):
        # neighbour in the alphabet; for the last character this only touches
        # bits that fall outside the decoded bytes
        changed = _B64URL[_B64URL.index(char) ^ 1]
        tampered = ".".join((head, body, signature[:i] + changed + signature[i + 1:]))

        with pytest.raises(ValidationError) as exc_info:
            parser.parse(tampered, key_of(secret))
        assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID


def test_changed_content_is_rejected(parser, make_token, secret):
    head, _, signature = make_token(StandardClaims(subject="alice")).split(".")

    forged_body = _segment({"sub": "mallory"})
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(".".join((head, forged_body, signature)), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID
    assert isinstance(exc_info.value.inner, SignatureInvalidError)

    forged_head = _segment({"alg": "HS256", "typ": "JWT", "kid": "x"})
    _, body, _ = make_token(StandardClaims(subject="alice")).split(".")
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(".".join((forged_head, body, signature)), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID


def test_undecodable_signature_is_signature_invalid(parser, make_token, secret):
    head, body, _ = make_token().split(".")
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(f"{head}.{body}.***", key_of(secret))
    assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID


# --- Structure ------------------------------------------------------------


@pytest.mark.parametrize("token_string", ["", "abc", "a.b", "a.b.c.d", "...", "a..b.c"])
def test_wrong_segment_count_is_malformed(parser, token_string):
    called = []
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(token_string, lambda t: called.append(t))

    err = exc_info.value
    assert err.errors == ValidationFlag.MALFORMED
    assert err.token is None
    assert called == []


@pytest.mark.parametrize(
    "header",
    [
        "!!!",                            # not base64url
        encode_segment(b"not json"),
        encode_segment(b"[1, 2]"),        # not an object
        encode_segment(b"\xff\xfe"),      # not utf-8
    ],
)
def test_bad_header_is_malformed(parser, secret, header):
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(f"{header}.{_segment({})}.sig", key_of(secret))
    assert exc_info.value.errors == ValidationFlag.MALFORMED


def test_bad_claims_are_malformed(parser, secret):
    head = _segment({"alg": "HS256", "typ": "JWT"})

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(f"{head}.%%%.sig", key_of(secret))
    assert exc_info.value.errors == ValidationFlag.MALFORMED
    assert exc_info.value.token.header["alg"] == "HS256"

    with pytest.raises(ValidationError) as exc_info:
        parser.parse_with_claims(f"{head}.{_segment({'exp': 'soon'})}.sig", StandardClaims, key_of(secret))
    assert exc_info.value.errors == ValidationFlag.MALFORMED
    assert str(exc_info.value) == "claim 'exp' must be an integer, got str"


def test_bearer_prefix_is_malformed(parser, make_token, secret):
    with pytest.raises(ValidationError) as exc_info:
        parser.parse("Bearer " + make_token(), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.MALFORMED
    assert str(exc_info.value) == "token string should not contain 'bearer '"


# --- Method and key resolution --------------------------------------------


@pytest.mark.parametrize("alg", ["none", "None", "RS256", "", None, 256])
def test_unregistered_alg_is_unverifiable(parser, secret, alg):
    called = []
    head = _segment({"alg": alg, "typ": "JWT"})
    token_string = f"{head}.{_segment({'sub': 'mallory'})}."

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(token_string, lambda t: called.append(t) or secret)

    assert exc_info.value.errors == ValidationFlag.UNVERIFIABLE
    assert exc_info.value.token.method is None
    assert called == []


def test_missing_alg_is_unverifiable(parser, secret):
    token_string = f"{_segment({'typ': 'JWT'})}.{_segment({})}.sig"
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(token_string, key_of(secret))
    assert exc_info.value.errors == ValidationFlag.UNVERIFIABLE


def test_deeply_nested_segments_are_malformed(parser, make_token, secret):
    nested = encode_segment(b"[" * 100_000)
    head, body, signature = make_token().split(".")

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(f"{nested}.{body}.{signature}", key_of(secret))
    assert exc_info.value.errors == ValidationFlag.MALFORMED
    assert exc_info.value.text == "could not decode header"

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(f"{head}.{nested}.{signature}", key_of(secret))
    assert exc_info.value.errors == ValidationFlag.MALFORMED
    assert exc_info.value.text == "could not decode claims"


class _BrokenMethod:
    """Signs with a fixed value and fails verification with a foreign error."""

    alg = "XB1"

    def sign(self, signing_string, key):
        return "c2ln"

    def verify(self, signing_string, signature, key):
        raise ValueError("could not load key")


def test_foreign_verify_errors_are_signature_invalid(make_token, secret):
    registry = SigningMethodRegistry()
    registry.register(_BrokenMethod.alg, _BrokenMethod)
    parser = Parser(registry=registry, clock=lambda: NOW)

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(StandardClaims(expires_at=NOW - 1), method=_BrokenMethod()), key_of(secret))

    err = exc_info.value
    assert err.errors == ValidationFlag.SIGNATURE_INVALID | ValidationFlag.EXPIRED
    assert isinstance(err.inner, TokenExpiredError)

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(method=_BrokenMethod()), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID
    assert isinstance(exc_info.value.inner, ValueError)


def test_parser_uses_its_own_registry(make_token, secret):
    parser = Parser(registry=SigningMethodRegistry())
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.UNVERIFIABLE


def test_valid_methods(make_token, secret):
    parser = Parser(valid_methods=["HS512"])

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(method=HS256), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID
    assert str(exc_info.value) == "signing method HS256 is invalid"

    assert parser.parse(make_token(method=HS512), key_of(secret)).valid


def test_key_func_sees_unverified_token(parser, make_token, secret):
    seen = []

    def key_func(token: Token):
        seen.append((dict(token.header), token.claims.to_dict(), token.method, token.signature, token.valid))
        return secret

    parser.parse_with_claims(make_token(StandardClaims(subject="alice")), StandardClaims, key_func)

    assert seen == [({"typ": "JWT", "alg": "HS256"}, {"sub": "alice"}, HS256, "", False)]


def test_key_func_failures_are_unverifiable(parser, make_token):
    def failing(token):
        raise LookupError("no key for kid")

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(), failing)
    err = exc_info.value
    assert err.errors == ValidationFlag.UNVERIFIABLE
    assert isinstance(err.inner, LookupError)
    assert str(err) == "no key for kid"

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(), None)
    assert exc_info.value.errors == ValidationFlag.UNVERIFIABLE


def test_key_func_validation_error_passes_through(parser, make_token):
    own = ValidationError("revoked", ValidationFlag.CLAIMS_INVALID)

    def key_func(token):
        raise own

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(), key_func)
    assert exc_info.value is own
    assert own.token is not None


def test_wrong_key_type_is_signature_invalid(parser, make_token):
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(), lambda t: "s3cr3t")
    assert exc_info.value.errors == ValidationFlag.SIGNATURE_INVALID


# --- Claims -----------------------------------------------------------------


def test_expiry_boundary(parser, make_token, secret):
    assert parser.parse(make_token(StandardClaims(expires_at=NOW)), key_of(secret)).valid

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(StandardClaims(expires_at=NOW - 1)), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.EXPIRED
    assert isinstance(exc_info.value.inner, TokenExpiredError)


def test_expiry_far_in_the_past_is_expired(parser, make_token, secret):
    with pytest.raises(ValidationError) as exc_info:
        parser.parse(make_token(StandardClaims(expires_at=-10**15)), key_of(secret))
    assert exc_info.value.errors == ValidationFlag.EXPIRED
    assert isinstance(exc_info.value.inner, TokenExpiredError)


def test_bad_signature_and_expired_are_both_reported(parser, make_token):
    signed = make_token(StandardClaims(expires_at=NOW - 10))

    with pytest.raises(ValidationError) as exc_info:
        parser.parse(signed, lambda t: b"wrong-secret")

    err = exc_info.value
    assert err.errors == ValidationFlag.SIGNATURE_INVALID | ValidationFlag.EXPIRED
    assert isinstance(err.inner, TokenExpiredError)
    assert err.token.valid is False


def test_clock_is_injected(make_token, secret):
    signed = make_token(StandardClaims(not_before=NOW))

    with pytest.raises(ValidationError) as exc_info:
        Parser(clock=lambda: NOW - 1).parse(signed, key_of(secret))
    assert exc_info.value.errors == ValidationFlag.NOT_VALID_YET

    assert Parser(clock=lambda: NOW).parse(signed, key_of(secret)).valid


def test_skip_claims_validation(make_token, secret):
    signed = make_token(StandardClaims(expires_at=NOW - 10))
    parser = Parser(clock=lambda: NOW, skip_claims_validation=True)
    assert parser.parse(signed, key_of(secret)).valid


class StrictClaims(MapClaims):
    __slots__ = ()

    def valid(self, clock=time.time):
        if "sub" not in self:
            raise RuntimeError("sub is required")


def test_custom_claims_errors_are_claims_invalid(parser, make_token, secret):
    signed = make_token(MapClaims({"name": "anonymous"}))

    with pytest.raises(ValidationError) as exc_info:
        parser.parse_with_claims(signed, StrictClaims, key_of(secret))
    assert exc_info.value.errors == ValidationFlag.CLAIMS_INVALID
    assert str(exc_info.value) == "sub is required"

    signed = make_token(MapClaims({"sub": "alice"}))
    assert parser.parse_with_claims(signed, StrictClaims, key_of(secret)).valid


def test_parse_unverified(parser, make_token):
    signed = make_token(StandardClaims(subject="alice", expires_at=NOW - 10))
    token, parts = parser.parse_unverified(signed, StandardClaims)

    assert parts == signed.split(".")
    assert token.claims.subject == "alice"
    assert token.method is HS256
    assert token.valid is False
