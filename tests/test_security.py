"""
Tests for password hashing and token helpers.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import ExpiredSignatureError, JWTError, jwt

from storefront.core.config import settings
from storefront.core.security import (
    create_access_token,
    decode_access_token,
    generate_refresh_token,
    get_password_hash,
    hash_refresh_token,
    refresh_token_cutoff,
    refresh_token_expired,
    verify_password,
)


def test_password_hash_round_trip() -> None:
    hashed = get_password_hash("s3cret")
    assert hashed != "s3cret"
    assert hashed.startswith("$pbkdf2-sha256$")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_password_hash_is_salted() -> None:
    assert get_password_hash("same") != get_password_hash("same")


def test_access_token_carries_identity_and_role() -> None:
    user_id = uuid.uuid4()
    token = create_access_token(subject=user_id, role="admin")
    payload = decode_access_token(token)
    assert payload["sub"] == str(user_id)
    assert payload["role"] == "admin"
    assert payload["type"] == "access"
    assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_expired_access_token_rejected() -> None:
    token = create_access_token(subject=uuid.uuid4(), role="user", expires_delta=timedelta(seconds=-1))
    with pytest.raises(ExpiredSignatureError):
        decode_access_token(token)


def test_access_token_with_foreign_signature_rejected() -> None:
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "role": "admin", "type": "access"},
        "some-other-secret",
        algorithm=settings.ALGORITHM,
    )
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_refresh_tokens_are_opaque_and_unique() -> None:
    first, second = generate_refresh_token(), generate_refresh_token()
    assert first != second
    assert len(first) == 128
    int(first, 16)


def test_refresh_token_digest_is_stable() -> None:
    token = generate_refresh_token()
    assert hash_refresh_token(token) == hash_refresh_token(token)
    assert hash_refresh_token(token) != token
    assert len(hash_refresh_token(token)) == 64


def test_refresh_token_expiry_boundary() -> None:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ttl = timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS)

    assert not refresh_token_expired(created, now=created + ttl - timedelta(seconds=1))
    assert refresh_token_expired(created, now=created + ttl)
    assert refresh_token_expired(created, now=created + ttl + timedelta(days=1))


def test_refresh_token_expiry_accepts_naive_utc() -> None:
    created = datetime(2024, 1, 1)
    now = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS)
    assert refresh_token_expired(created, now=now)


def test_refresh_token_cutoff() -> None:
    now = datetime(2024, 1, 8, tzinfo=timezone.utc)
    assert refresh_token_cutoff(now) == datetime(2024, 1, 1, tzinfo=timezone.utc)
