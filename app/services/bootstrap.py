"""
Idempotent bootstrap: seed permissions, then roles, then (optionally) users.

Each step only runs when its table is empty, so calling bootstrap on every
process start is safe.
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models import Permission, Role, User
from app.services import credential_store
from app.services.authorization import SUPER_ADMINISTRATOR

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

RESOURCES = ("user", "role")
ACTIONS = ("create", "read", "update", "delete")

ADMINISTRATOR = "Administrator"
MODERATOR = "Moderator"


def _role_grants(role_name: str, permission: Permission) -> bool:
    if role_name == SUPER_ADMINISTRATOR:
        return True
    if role_name == ADMINISTRATOR:
        return permission.resource == "user"
    if role_name == MODERATOR:
        return permission.resource == "user" and permission.action != "delete"
    return False


def seed_permissions(session: Session) -> int:
    if session.query(func.count(Permission.id)).scalar():
        return 0
    for resource in RESOURCES:
        for action in ACTIONS:
            session.add(Permission(resource=resource, action=action))
    session.commit()
    return len(RESOURCES) * len(ACTIONS)


def seed_roles(session: Session, settings: "Settings") -> int:
    if session.query(func.count(Role.id)).scalar():
        return 0
    permissions = session.query(Permission).order_by(Permission.id).all()
    names = [SUPER_ADMINISTRATOR, ADMINISTRATOR, MODERATOR, settings.DEFAULT_ROLE_NAME]
    for name in names:
        session.add(
            Role(name=name, permissions=[p for p in permissions if _role_grants(name, p)])
        )
    session.commit()
    return len(names)


def seed_users(session: Session, settings: "Settings") -> int:
    """Demo accounts, one per role; superadmin holds all four. Only when SEED_DEFAULT_USERS is set."""
    if not settings.SEED_DEFAULT_USERS or credential_store.count_users(session):
        return 0
    roles = {role.name: role for role in session.query(Role).all()}
    password_hash = hash_password(settings.SEED_DEFAULT_PASSWORD.get_secret_value())
    default_role = settings.DEFAULT_ROLE_NAME
    accounts = [
        ("superadmin", [SUPER_ADMINISTRATOR, ADMINISTRATOR, MODERATOR, default_role]),
        ("admin", [ADMINISTRATOR]),
        ("moderator", [MODERATOR]),
        ("user", [default_role]),
    ]
    for username, role_names in accounts:
        session.add(
            User(
                username=username,
                email=f"{username}@example.com",
                password_hash=password_hash,
                first_name=username.capitalize(),
                last_name="",
                confirmed=True,
                roles=[roles[name] for name in role_names if name in roles],
            )
        )
    session.commit()
    return len(accounts)


def bootstrap(session: Session, settings: "Settings") -> tuple[int, int, int]:
    """Run permissions -> roles -> users seeding. Returns (permissions, roles, users) created."""
    created = (
        seed_permissions(session),
        seed_roles(session, settings),
        seed_users(session, settings),
    )
    if any(created):
        logger.info(
            "Bootstrap seeded permissions=%s roles=%s users=%s",
            *created,
        )
    return created
