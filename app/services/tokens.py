"""
Token service.

Access tokens are stateless JWTs (verifiable without a store round trip).
Refresh, email-verification and password-reset tokens are opaque random
strings; only their SHA-256 digest is stored and used as the lookup key.

Functions here never commit: the calling workflow owns the transaction, so
revocation of an old credential and creation of the new one land together.
"""

import logging
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

import jwt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import InvalidToken, TokenExpired, TokenRevoked
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_opaque_token,
    hash_token,
)
from app.models import RefreshToken, ResetPasswordToken, User, VerifyEmailToken
from app.schemas.auth import AuthTokens, TokenView
from app.services import credential_store

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class TokenPurpose(str, Enum):
    """What a single-use token may be consumed for."""

    VERIFY_EMAIL = "verify_email"
    RESET_PASSWORD = "reset_password"


_SINGLE_USE_MODELS: dict[TokenPurpose, type[VerifyEmailToken] | type[ResetPasswordToken]] = {
    TokenPurpose.VERIFY_EMAIL: VerifyEmailToken,
    TokenPurpose.RESET_PASSWORD: ResetPasswordToken,
}


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the store as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _single_use_ttl(purpose: TokenPurpose, settings: "Settings") -> timedelta:
    if purpose is TokenPurpose.VERIFY_EMAIL:
        return timedelta(minutes=settings.VERIFY_EMAIL_TOKEN_EXPIRE_MINUTES)
    return timedelta(minutes=settings.RESET_PASSWORD_TOKEN_EXPIRE_MINUTES)


# --------- Access tokens ----------


def issue_access_token(user: User, settings: "Settings") -> TokenView:
    """Sign {sub, iat, exp} for the user; short TTL."""
    token, expires = create_access_token(
        user.id, expires_delta=timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES)
    )
    return TokenView(token=token, expires=expires)


def verify_access_token(token: str) -> int:
    """Check signature and expiry and return the subject user id. Does not touch the store."""
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Access token expired") from e
    except jwt.PyJWTError as e:
        raise InvalidToken("Invalid access token") from e
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidToken("Invalid access token payload") from e


# --------- Refresh tokens ----------


def issue_refresh_token(session: Session, user: User, settings: "Settings") -> TokenView:
    """Generate an opaque refresh token and persist its record (flushed, not committed)."""
    token = generate_opaque_token()
    expires = utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    session.add(
        RefreshToken(
            token_hash=hash_token(token),
            user_id=user.id,
            expires_at=expires,
            blacklisted=False,
        )
    )
    session.flush()
    return TokenView(token=token, expires=expires)


def generate_auth_tokens(session: Session, user: User, settings: "Settings") -> AuthTokens:
    """Issue an access + refresh pair for the user."""
    return AuthTokens(
        access=issue_access_token(user, settings),
        refresh=issue_refresh_token(session, user, settings),
    )


def verify_refresh_token(session: Session, token: str) -> RefreshToken:
    """
    Look up the persisted refresh token record.

    Raises InvalidToken when missing, TokenRevoked when blacklisted, TokenExpired when past expiry.
    """
    record = (
        session.query(RefreshToken)
        .filter(RefreshToken.token_hash == hash_token(token))
        .first()
    )
    if record is None:
        raise InvalidToken("Refresh token not found")
    if record.blacklisted:
        logger.warning("Blacklisted refresh token presented", extra={"user_id": record.user_id})
        raise TokenRevoked("Refresh token revoked")
    if as_utc(record.expires_at) <= utcnow():
        raise TokenExpired("Refresh token expired")
    return record


def consume_refresh_token(session: Session, record: RefreshToken) -> None:
    """
    Delete the record if (and only if) it is still live. The conditional delete is
    the compare-and-set that stops two concurrent consumers from both succeeding.
    """
    deleted = (
        session.query(RefreshToken)
        .filter(RefreshToken.id == record.id, RefreshToken.blacklisted.is_(False))
        .delete(synchronize_session=False)
    )
    if deleted != 1:
        raise InvalidToken("Refresh token already used")
    session.expunge(record)


def rotate_refresh_token(
    session: Session, record: RefreshToken, user: User, settings: "Settings"
) -> AuthTokens:
    """Consume the old refresh token and issue a fresh pair in the same transaction."""
    consume_refresh_token(session, record)
    tokens = generate_auth_tokens(session, user, settings)
    logger.info("Refresh token rotated", extra={"user_id": user.id})
    return tokens


def revoke_refresh_tokens(session: Session, user_id: int) -> int:
    """Blacklist every outstanding refresh token of the user. Returns how many were revoked."""
    return (
        session.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.blacklisted.is_(False))
        .update({RefreshToken.blacklisted: True}, synchronize_session=False)
    )


# --------- Single-use tokens ----------


def issue_single_use_token(
    session: Session, user: User, purpose: TokenPurpose, settings: "Settings"
) -> str:
    """Persist a single-use token for the purpose and return the opaque string (shown once)."""
    model = _SINGLE_USE_MODELS[purpose]
    token = generate_opaque_token()
    session.add(
        model(
            token_hash=hash_token(token),
            user_id=user.id,
            expires_at=utcnow() + _single_use_ttl(purpose, settings),
        )
    )
    session.flush()
    return token


def consume_single_use_token(session: Session, token: str, purpose: TokenPurpose) -> User:
    """
    Delete the token record and return its (hydrated) owner.

    Raises InvalidToken when the token is unknown, already consumed, or its owner
    no longer exists; TokenExpired when past expiry.
    """
    model = _SINGLE_USE_MODELS[purpose]
    record = session.query(model).filter(model.token_hash == hash_token(token)).first()
    if record is None:
        raise InvalidToken("Token not found")
    if as_utc(record.expires_at) <= utcnow():
        raise TokenExpired("Token expired")
    deleted = (
        session.query(model)
        .filter(model.id == record.id)
        .delete(synchronize_session=False)
    )
    if deleted != 1:
        raise InvalidToken("Token already used")
    session.expunge(record)
    user = credential_store.get_user_by_id(session, record.user_id)
    if user is None:
        raise InvalidToken("Token owner no longer exists")
    return user


def delete_single_use_tokens(session: Session, user_id: int, purpose: TokenPurpose) -> int:
    """Drop every outstanding token of the purpose for the user."""
    model = _SINGLE_USE_MODELS[purpose]
    return (
        session.query(model)
        .filter(model.user_id == user_id)
        .delete(synchronize_session=False)
    )


def purge_expired_tokens(session: Session, now: datetime | None = None) -> dict[str, int]:
    """Delete expired or blacklisted refresh tokens and expired single-use tokens. Does not commit."""
    cutoff = now or utcnow()
    counts = {
        "refresh": session.query(RefreshToken)
        .filter(or_(RefreshToken.expires_at <= cutoff, RefreshToken.blacklisted.is_(True)))
        .delete(synchronize_session=False)
    }
    for purpose, model in _SINGLE_USE_MODELS.items():
        counts[purpose.value] = (
            session.query(model)
            .filter(model.expires_at <= cutoff)
            .delete(synchronize_session=False)
        )
    return counts
