"""Unit tests for password hashing and session tokens."""

from datetime import timedelta

import jwt
import pytest
from fastapi.security import HTTPAuthorizationCredentials

from villa.core.exceptions import InvalidTokenError, MissingTokenError, ValidationError
from villa.core.security import (
    create_access_token,
    decode_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    verify_password,
)
from villa.core.settings import settings


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_hash_password_is_salted_and_verifiable():
    first = hash_password("secret123")
    second = hash_password("secret123")

    assert first != "secret123"
    assert first != second
    assert verify_password("secret123", first)
    assert verify_password("secret123", second)


def test_verify_password_rejects_wrong_password():
    hashed = hash_password("secret123")

    assert not verify_password("Secret123", hashed)
    assert not verify_password("secret123 ", hashed)


def test_verify_password_rejects_non_hash_values():
    assert not verify_password("secret123", "secret123")
    assert not verify_password("secret123", "")


def test_hash_password_rejects_overlong_input():
    with pytest.raises(ValidationError):
        hash_password("x" * 73)


def test_token_round_trip():
    token = create_access_token("alice", "user")

    data = decode_access_token(token)

    assert data.username == "alice"
    assert data.role == "user"


def test_token_expires_after_configured_lifetime():
    token = create_access_token("alice")
    payload = jwt.decode(
        token, settings.security.secret_key, algorithms=[settings.security.algorithm]
    )

    lifetime = payload["exp"] - payload["iat"]
    assert lifetime == settings.security.access_token_expire_minutes * 60


def test_expired_token_is_rejected():
    token = create_access_token("alice", expires_delta=timedelta(seconds=-1))

    with pytest.raises(InvalidTokenError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.error_code == "TOKEN_EXPIRED"
    assert exc_info.value.status_code == 403


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode(
        {"sub": "alice", "username": "alice", "exp": 9999999999},
        "some-other-signing-key-0123456789abcdef",
        algorithm="HS256",
    )

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidTokenError):
        decode_access_token("not-a-token")


@pytest.mark.asyncio
async def test_get_current_user_requires_credentials():
    with pytest.raises(MissingTokenError) as exc_info:
        await get_current_user(None)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user_returns_identity():
    data = await get_current_user(bearer(create_access_token("alice", "user")))

    assert data.username == "alice"


@pytest.mark.asyncio
async def test_get_optional_user_is_anonymous_without_valid_token():
    assert await get_optional_user(None) is None
    assert await get_optional_user(bearer("broken")) is None


@pytest.mark.asyncio
async def test_get_optional_user_returns_identity():
    data = await get_optional_user(bearer(create_access_token("bob")))

    assert data is not None
    assert data.username == "bob"
