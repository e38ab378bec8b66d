"""User administration: create, search/paginate, read, update and delete users."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ServiceError, ValidationFailed
from app.core.security import hash_password
from app.models import Role, User
from app.schemas.user import UserCreateRequest, UserUpdateRequest
from app.services import credential_store, tokens
from app.services.auth import check_password_policy
from app.services.authorization import (
    SUPER_ADMINISTRATOR,
    assert_not_last_super_administrator,
    has_role,
    roles_include,
)

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Public sort keys -> columns. Anything else is rejected.
SORTABLE_COLUMNS = {
    "id": User.id,
    "username": User.username,
    "email": User.email,
    "first_name": User.first_name,
    "last_name": User.last_name,
    "created_at": User.created_at,
}


def _like_pattern(q: str) -> str:
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _resolve_roles(session: Session, role_ids: list[int]) -> list[Role]:
    wanted = set(role_ids)
    roles = session.query(Role).filter(Role.id.in_(wanted)).order_by(Role.id).all()
    missing = wanted - {role.id for role in roles}
    if missing:
        raise ValidationFailed(f"Unknown role ids: {sorted(missing)}")
    return roles


def _default_roles(session: Session, settings: "Settings") -> list[Role]:
    role = credential_store.get_role_by_name(session, settings.DEFAULT_ROLE_NAME)
    if role is None:
        logger.error(
            "Default role is missing; run bootstrap",
            extra={"role_name": settings.DEFAULT_ROLE_NAME},
        )
        raise ServiceError("Default role is not configured")
    return [role]


def query_users(
    session: Session,
    q: str | None = None,
    limit: int = DEFAULT_PAGE_LIMIT,
    page: int = 1,
    sort_by: str = "id",
    sort_direction: str = "asc",
) -> tuple[list[User], int]:
    """
    Search users by username, email or name (case-insensitive substring).

    Returns (users on the requested page, total matching users).
    """
    if not (1 <= limit <= MAX_PAGE_LIMIT):
        raise ValidationFailed(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    if page < 1:
        raise ValidationFailed("page must be at least 1")
    column = SORTABLE_COLUMNS.get(sort_by)
    if column is None:
        raise ValidationFailed(
            f"sort_by must be one of: {', '.join(sorted(SORTABLE_COLUMNS))}"
        )
    direction = sort_direction.lower()
    if direction not in ("asc", "desc"):
        raise ValidationFailed("sort_direction must be 'asc' or 'desc'")

    query = session.query(User)
    if q and q.strip():
        pattern = _like_pattern(q.strip())
        query = query.filter(
            or_(
                User.username.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
                User.first_name.ilike(pattern, escape="\\"),
                User.last_name.ilike(pattern, escape="\\"),
            )
        )
    total = query.count()
    order = column.desc() if direction == "desc" else column.asc()
    results = (
        query.options(*credential_store.hydrated_user_options())
        .order_by(order, User.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return results, total


def get_user(session: Session, user_id: int) -> User:
    user = credential_store.get_user_by_id(session, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def create_user(session: Session, body: UserCreateRequest, settings: "Settings") -> User:
    """Admin-side creation with explicit roles (default role when none are given)."""
    check_password_policy(body.password, settings)
    if credential_store.username_exists(session, body.username):
        raise Conflict("Username already exists")
    if credential_store.email_exists(session, body.email):
        raise Conflict("Email already exists")
    roles = _resolve_roles(session, body.role_ids) if body.role_ids else _default_roles(session, settings)

    user = User(
        username=body.username,
        email=credential_store.normalize_email(body.email),
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        confirmed=False,
        roles=roles,
    )
    if body.avatar:
        user.avatar = body.avatar
    session.add(user)
    credential_store.commit_or_conflict(session, "Username or email already exists")
    logger.info("User created", extra={"user_id": user.id})
    return get_user(session, user.id)


def update_user(
    session: Session, user_id: int, body: UserUpdateRequest, settings: "Settings"
) -> User:
    """
    Apply a partial update. Role reassignment that drops Super Administrator is
    guarded (in the same transaction) so the last holder cannot be demoted.
    A password change revokes all of the user's refresh tokens.

    Every check runs before the user is touched, so a rejected update leaves
    nothing pending on the session.
    """
    user = get_user(session, user_id)
    fields = body.model_dump(exclude_unset=True)

    username = fields.pop("username", None)
    if username == user.username:
        username = None
    if username is not None and credential_store.username_exists(
        session, username, exclude_user_id=user.id
    ):
        raise Conflict("Username already exists")

    email = fields.pop("email", None)
    if email is not None:
        email = credential_store.normalize_email(email)
        if email == user.email:
            email = None
        elif credential_store.email_exists(session, email, exclude_user_id=user.id):
            raise Conflict("Email already exists")

    password = fields.pop("password", None)
    if password is not None:
        check_password_policy(password, settings)

    new_roles = None
    role_ids = fields.pop("role_ids", None)
    if role_ids is not None:
        if not role_ids:
            raise ValidationFailed("A user must have at least one role")
        new_roles = _resolve_roles(session, role_ids)
        if has_role(user, SUPER_ADMINISTRATOR) and not roles_include(new_roles, SUPER_ADMINISTRATOR):
            assert_not_last_super_administrator(session, user.id)

    if username is not None:
        user.username = username
    if email is not None:
        user.email = email
    if password is not None:
        user.password_hash = hash_password(password)
        tokens.revoke_refresh_tokens(session, user.id)
    if new_roles is not None:
        user.roles = new_roles
    for name in ("first_name", "last_name", "avatar", "confirmed"):
        if fields.get(name) is not None:
            setattr(user, name, fields[name])

    credential_store.commit_or_conflict(session, "Username or email already exists")
    logger.info("User updated", extra={"user_id": user_id})
    return get_user(session, user_id)


def delete_user(session: Session, user_id: int) -> None:
    """Hard-delete a user, unless it is the last Super Administrator."""
    user = get_user(session, user_id)
    if has_role(user, SUPER_ADMINISTRATOR):
        assert_not_last_super_administrator(session, user.id)
    session.delete(user)
    session.commit()
    logger.info("User deleted", extra={"user_id": user_id})
