"""Password hashing, access tokens and one-time account tokens."""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import jwt

from sheltersync.core.config import get_settings

settings = get_settings()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except (ValueError, TypeError):  # malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(
    subject: str, *, role: str, expires_delta: timedelta | None = None
) -> str:
    """Sign a token for ``subject``; ``iat`` lets password changes revoke it."""
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a JWT token, raising JWTError on failure."""
    return jwt.decode(
        token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
    )


def generate_token() -> str:
    """Random URL-safe token for email verification and password reset links."""
    return secrets.token_urlsafe(32)


def hash_token(raw: str) -> str:
    """Only this digest is stored; the raw token goes out by email."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
