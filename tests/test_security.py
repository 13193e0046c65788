import base64

import jwt
import pytest

from tasklist_api.core.config import Settings
from tasklist_api.core.errors import AuthenticationError
from tasklist_api.utils.security import PasswordHasher, TokenIssuer

from .conftest import TEST_SECRET


def test_hash_and_verify(hasher):
    hashed = hasher.hash("Str0ng!Pass")
    assert hashed != "Str0ng!Pass"
    assert hasher.verify(hashed, "Str0ng!Pass")
    assert not hasher.verify(hashed, "wrong")


def test_hash_is_salted(hasher):
    assert hasher.hash("Str0ng!Pass") != hasher.hash("Str0ng!Pass")


def test_verify_never_raises_on_garbage():
    hasher = PasswordHasher(rounds=4)
    assert not hasher.verify("not-a-bcrypt-hash", "whatever")


async def test_async_wrappers(hasher):
    hashed = await hasher.hash_async("Str0ng!Pass")
    assert await hasher.verify_async(hashed, "Str0ng!Pass")
    assert not await hasher.verify_async(hashed, "Str0ng!Pas")


def test_access_token_claims(tokens, settings):
    token = tokens.issue_access_token(7, "ann@x.com")
    claims = jwt.decode(
        token,
        TEST_SECRET,
        algorithms=["HS256"],
        audience=settings.AUTH_AUD,
        issuer=settings.AUTH_ISS,
    )
    assert claims["sub"] == "7"
    assert claims["email"] == "ann@x.com"
    assert claims["role"] == "User"
    assert claims["exp"] - claims["iat"] == settings.AUTH_ACCESS_TTL_MIN * 60


def test_access_tokens_are_unique_per_call(tokens):
    first = tokens.decode_access_token(tokens.issue_access_token(1, "a@x.com"))
    second = tokens.decode_access_token(tokens.issue_access_token(1, "a@x.com"))
    assert first["jti"] != second["jti"]


def test_decode_rejects_wrong_key(tokens, settings, clock):
    other = TokenIssuer(
        Settings(AUTH_JWT_SECRET="another-secret-key-of-sufficient-length!", _env_file=None),
        clock,
    )
    with pytest.raises(AuthenticationError):
        tokens.decode_access_token(other.issue_access_token(1, "a@x.com"))


def test_decode_rejects_wrong_audience(settings, clock):
    issuer = TokenIssuer(settings, clock)
    foreign = TokenIssuer(
        Settings(AUTH_JWT_SECRET=TEST_SECRET, AUTH_AUD="someone-else", _env_file=None),
        clock,
    )
    with pytest.raises(AuthenticationError):
        issuer.decode_access_token(foreign.issue_access_token(1, "a@x.com"))


def test_decode_rejects_expired_token(settings, clock):
    issuer = TokenIssuer(settings, clock)
    clock.advance(minutes=-(settings.AUTH_ACCESS_TTL_MIN + 5))
    stale = issuer.issue_access_token(1, "a@x.com")
    with pytest.raises(AuthenticationError):
        issuer.decode_access_token(stale)


def test_refresh_token_is_opaque_and_random(tokens, settings, clock):
    first = tokens.issue_refresh_token()
    second = tokens.issue_refresh_token()
    assert first.token != second.token
    assert len(base64.b64decode(first.token)) == 32
    assert first.created_on == clock.now()
    assert (first.expires_on - first.created_on).days == settings.AUTH_REFRESH_TTL_DAYS


def test_missing_signing_key_is_fatal():
    with pytest.raises(ValueError):
        Settings(AUTH_JWT_SECRET="   ", _env_file=None)
