"""Password hashing, JWT creation/verification and opaque token primitives."""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for username validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255

# Entropy of opaque refresh / verification / reset tokens (bytes before base64).
OPAQUE_TOKEN_BYTES = 48


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage with a fresh salt. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare inside bcrypt)."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        # Corrupt hash in the store: internal problem, not the caller's.
        logger.error("Stored password hash has an invalid format")
        return False


def create_access_token(
    sub: str | int, expires_delta: timedelta | None = None
) -> tuple[str, datetime]:
    """Create a JWT access token with sub, iat and exp. Returns (token, expires_at)."""
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))
    payload: dict[str, Any] = {
        "sub": str(sub),
        "iat": now,
        "exp": expire,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    token = jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )
    return token, expire


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp", "iat"]},
    )


def generate_opaque_token() -> str:
    """Random URL-safe token with no semantic content; used only as a store lookup key."""
    return secrets.token_urlsafe(OPAQUE_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of an opaque token. Only the digest is persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
