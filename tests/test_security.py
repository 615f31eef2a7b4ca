"""
Identity provider - token verification
"""
from datetime import timedelta

import jwt
import pytest

from seat_inventory.core.security import JWTIdentityProvider, _bearer_token
from seat_inventory.services import AuthError


@pytest.fixture
def provider():
    return JWTIdentityProvider(secret="secret")


def test_round_trip_subject(provider):
    assert provider.verify(provider.issue_token("alice")) == "alice"


def test_expired_token(provider):
    token = provider.issue_token("alice", expires_in=timedelta(seconds=-10))
    with pytest.raises(AuthError) as exc_info:
        provider.verify(token)
    assert "expired" in exc_info.value.message


def test_wrong_secret(provider):
    token = JWTIdentityProvider(secret="other").issue_token("alice")
    with pytest.raises(AuthError):
        provider.verify(token)


def test_token_without_expiry_rejected(provider):
    token = jwt.encode({"sub": "alice"}, "secret", algorithm="HS256")
    with pytest.raises(AuthError):
        provider.verify(token)


def test_empty_token(provider):
    with pytest.raises(AuthError):
        provider.verify("")


def test_audience_checked():
    provider = JWTIdentityProvider(secret="secret", audience="seat-inventory")
    assert provider.verify(provider.issue_token("alice")) == "alice"

    foreign = JWTIdentityProvider(secret="secret", audience="billing").issue_token("alice")
    with pytest.raises(AuthError):
        provider.verify(foreign)


@pytest.mark.parametrize("header,token", [
    ("Bearer abc", "abc"),
    ("bearer  abc ", "abc"),
    ("Basic abc", None),
    ("Bearer", None),
    (None, None),
])
def test_bearer_token_parsing(header, token):
    assert _bearer_token(header) == token
