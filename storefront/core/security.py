"""
Security utilities for password hashing and token management.

New password hashes use ``pbkdf2_sha256`` at a fixed round count. ``bcrypt``
verification is still supported for accounts imported with legacy hashes;
those are flagged as deprecated and re-hashed on the next successful login.

Access tokens are signed JWTs. Refresh tokens are opaque random strings;
only their SHA-256 digest is ever persisted.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt
from passlib.context import CryptContext

from storefront.core.config import settings

PBKDF2_ROUNDS = 29000
REFRESH_TOKEN_BYTES = 64
ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt"],
    deprecated="auto",
    pbkdf2_sha256__rounds=PBKDF2_ROUNDS,
)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on round-trip; everything is stored in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def create_access_token(
    subject: str | Any,
    role: str,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """
    Create a JWT access token.

    The role is snapshotted into the token; later role changes only take
    effect once a new token is issued.

    Args:
        subject: The subject (user ID) to encode in the token
        role: Role of the subject at issuance
        expires_delta: Optional custom expiration time
        now: Issuance time (defaults to the current time)

    Returns:
        Encoded JWT token string
    """
    issued_at = now or utcnow()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "role": str(role),
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT access token.

    Raises:
        jose.ExpiredSignatureError: If the token has expired
        jose.JWTError: If the token is malformed or the signature is invalid
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def generate_refresh_token() -> str:
    """Generate an opaque, unpredictable refresh token."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_refresh_token(token: str) -> str:
    """Digest used to store and look up refresh tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def refresh_token_expired(created_at: datetime, now: Optional[datetime] = None) -> bool:
    """
    Check whether a refresh token record has reached its hard expiry.

    A record exactly REFRESH_TOKEN_EXPIRE_SECONDS old is already expired.
    """
    now = now or utcnow()
    age = ensure_utc(now) - ensure_utc(created_at)
    return age >= timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS)


def refresh_token_cutoff(now: Optional[datetime] = None) -> datetime:
    """Records created at or before this instant are expired."""
    now = now or utcnow()
    return ensure_utc(now) - timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def verify_and_update_password(plain_password: str, hashed_password: str) -> tuple[bool, Optional[str]]:
    """
    Verify a password and return a replacement hash if the stored one is deprecated.

    Returns:
        (matched, new_hash) where new_hash is None unless a re-hash is due
    """
    return pwd_context.verify_and_update(plain_password, hashed_password)


def dummy_verify_password() -> None:
    """Run a throwaway verification so unknown accounts cost as much as real ones."""
    pwd_context.dummy_verify()


def get_password_hash(password: str) -> str:
    """
    Hash a password using the configured default scheme.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)
