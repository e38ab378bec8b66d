"""Read paths over users/roles that return fully hydrated aggregates (user -> roles -> permissions)."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import Conflict
from app.models import Role, User

logger = logging.getLogger(__name__)


def hydrated_user_options() -> list:
    """Loader options that eagerly join a user's roles and each role's permissions."""
    return [selectinload(User.roles).selectinload(Role.permissions)]


def get_user_by_id(session: Session, user_id: int) -> User | None:
    return (
        session.query(User)
        .options(*hydrated_user_options())
        .filter(User.id == user_id)
        .first()
    )


def get_user_by_username(session: Session, username: str) -> User | None:
    return (
        session.query(User)
        .options(*hydrated_user_options())
        .filter(User.username == username)
        .first()
    )


def get_user_by_email(session: Session, email: str) -> User | None:
    return (
        session.query(User)
        .options(*hydrated_user_options())
        .filter(User.email == normalize_email(email))
        .first()
    )


def username_exists(session: Session, username: str, exclude_user_id: int | None = None) -> bool:
    query = session.query(User.id).filter(User.username == username)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def email_exists(session: Session, email: str, exclude_user_id: int | None = None) -> bool:
    query = session.query(User.id).filter(User.email == normalize_email(email))
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def get_role_by_name(session: Session, name: str) -> Role | None:
    return (
        session.query(Role)
        .options(selectinload(Role.permissions))
        .filter(Role.name == name)
        .first()
    )


def count_users(session: Session) -> int:
    return session.query(func.count(User.id)).scalar() or 0


def normalize_email(email: str) -> str:
    """Emails are compared and stored lower-cased."""
    return email.strip().lower()


def commit_or_conflict(session: Session, message: str) -> None:
    """
    Commit the unit of work; a unique-constraint violation (lost race against a
    concurrent insert) is rolled back and surfaced as Conflict.
    """
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.info("Commit rejected by unique constraint: %s", e.orig)
        raise Conflict(message) from e
