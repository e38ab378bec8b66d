"""
Auth workflows: signup, signin, logout, refresh, email verification, forgot/reset password.

Each workflow fails fast with a ServiceError at the first violated precondition
and commits exactly once at the end, so a failed call leaves nothing behind.
"""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.errors import (
    Conflict,
    InvalidCredentials,
    InvalidToken,
    ServiceError,
    Unauthorized,
    ValidationFailed,
    VerificationFailed,
)
from app.core.security import hash_password, verify_password
from app.models import User
from app.schemas.auth import AuthTokens, SignupRequest
from app.services import credential_store, tokens
from app.services.tokens import TokenPurpose

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    """Hash compared against when the username is unknown, so both signin failures cost the same."""
    return hash_password("gatekeeper-timing-equalizer")


def check_password_policy(password: str, settings: "Settings") -> None:
    if not (settings.PASSWORD_MIN_LENGTH <= len(password) <= settings.PASSWORD_MAX_LENGTH):
        raise ValidationFailed(
            f"Password must be between {settings.PASSWORD_MIN_LENGTH} and "
            f"{settings.PASSWORD_MAX_LENGTH} characters"
        )


def signup(session: Session, body: SignupRequest, settings: "Settings") -> User:
    """
    Register a user with the default role. No tokens are issued; the caller signs in.

    Raises Conflict when the username or email is taken (nothing is persisted).
    """
    check_password_policy(body.password, settings)
    if credential_store.username_exists(session, body.username):
        raise Conflict("Username already exists")
    if credential_store.email_exists(session, body.email):
        raise Conflict("Email already exists")

    role = credential_store.get_role_by_name(session, settings.DEFAULT_ROLE_NAME)
    if role is None:
        logger.error(
            "Default role is missing; run bootstrap",
            extra={"role_name": settings.DEFAULT_ROLE_NAME},
        )
        raise ServiceError("Default role is not configured")

    user = User(
        username=body.username,
        email=credential_store.normalize_email(body.email),
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        confirmed=False,
        roles=[role],
    )
    session.add(user)
    credential_store.commit_or_conflict(session, "Username or email already exists")
    logger.info("User signed up", extra={"user_id": user.id})
    return credential_store.get_user_by_id(session, user.id)


def signin(
    session: Session, username: str, password: str, settings: "Settings"
) -> tuple[User, AuthTokens]:
    """
    Authenticate by username and password and issue an access + refresh pair.

    An unknown username and a wrong password raise the same InvalidCredentials.
    """
    user = credential_store.get_user_by_username(session, username)
    if user is None:
        verify_password(password, _dummy_password_hash())
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()

    auth_tokens = tokens.generate_auth_tokens(session, user, settings)
    session.commit()
    logger.info("User signed in", extra={"user_id": user.id})
    return user, auth_tokens


def logout(session: Session, refresh_token: str) -> None:
    """Consume a live refresh token. Unknown, revoked or expired tokens raise InvalidToken."""
    record = tokens.verify_refresh_token(session, refresh_token)
    user_id = record.user_id
    tokens.consume_refresh_token(session, record)
    session.commit()
    logger.info("User logged out", extra={"user_id": user_id})


def refresh(session: Session, refresh_token: str, settings: "Settings") -> AuthTokens:
    """Rotate a refresh token: the old one is unusable once the new pair is returned."""
    record = tokens.verify_refresh_token(session, refresh_token)
    user = credential_store.get_user_by_id(session, record.user_id)
    if user is None:
        raise Unauthorized()
    auth_tokens = tokens.rotate_refresh_token(session, record, user, settings)
    session.commit()
    return auth_tokens


def request_email_verification(session: Session, user: User, settings: "Settings") -> str:
    """Issue a verify-email token for the user. The HTTP layer mails it."""
    if user.confirmed:
        raise ValidationFailed("Email is already verified")
    token = tokens.issue_single_use_token(session, user, TokenPurpose.VERIFY_EMAIL, settings)
    session.commit()
    logger.info("Verification email requested", extra={"user_id": user.id})
    return token


def verify_email(session: Session, token: str) -> User:
    """
    Consume a verify-email token and mark its owner confirmed.

    Every failure (unknown, used, expired, owner deleted) surfaces as the same VerificationFailed.
    """
    try:
        user = tokens.consume_single_use_token(session, token, TokenPurpose.VERIFY_EMAIL)
    except InvalidToken as e:
        logger.info("Email verification rejected: %s", e.message)
        raise VerificationFailed() from e

    tokens.delete_single_use_tokens(session, user.id, TokenPurpose.VERIFY_EMAIL)
    user.confirmed = True
    session.commit()
    logger.info("Email verified", extra={"user_id": user.id})
    return user


def forgot_password(
    session: Session, email: str, settings: "Settings"
) -> tuple[User, str] | None:
    """
    Issue a reset-password token for the account with this email.

    Returns None for unknown emails; callers must respond identically either way.
    """
    user = credential_store.get_user_by_email(session, email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None
    token = tokens.issue_single_use_token(session, user, TokenPurpose.RESET_PASSWORD, settings)
    session.commit()
    logger.info("Password reset requested", extra={"user_id": user.id})
    return user, token


def reset_password(
    session: Session, token: str, new_password: str, settings: "Settings"
) -> User:
    """
    Consume a reset token, set the new password and revoke every refresh token
    of the user, so all existing sessions must sign in again.
    """
    check_password_policy(new_password, settings)
    user = tokens.consume_single_use_token(session, token, TokenPurpose.RESET_PASSWORD)
    user.password_hash = hash_password(new_password)
    tokens.delete_single_use_tokens(session, user.id, TokenPurpose.RESET_PASSWORD)
    revoked = tokens.revoke_refresh_tokens(session, user.id)
    session.commit()
    logger.info(
        "Password reset",
        extra={"user_id": user.id, "refresh_tokens_revoked": revoked},
    )
    return user
