"""
Authorization gate: role -> permission resolution and the last-Super-Administrator guard.

can() only walks user.roles[].permissions[]; how that graph is loaded is the
credential store's concern.
"""

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import Conflict
from app.models import Role, user_roles

logger = logging.getLogger(__name__)

SUPER_ADMINISTRATOR = "Super Administrator"


def permissions_of(user: Any) -> set[tuple[str, str]]:
    """All (resource, action) pairs granted by any of the user's roles."""
    return {
        (permission.resource, permission.action)
        for role in user.roles
        for permission in role.permissions
    }


def can(user: Any, resource: str, action: str) -> bool:
    """True iff some role held by the user grants (resource, action)."""
    return any(
        permission.resource == resource and permission.action == action
        for role in user.roles
        for permission in role.permissions
    )


def has_role(user: Any, role_name: str) -> bool:
    return any(role.name == role_name for role in user.roles)


def roles_include(roles: Iterable[Role], role_name: str) -> bool:
    return any(role.name == role_name for role in roles)


def assert_not_last_super_administrator(session: Session, user_id: int) -> None:
    """
    Reject a mutation that would leave no Super Administrator.

    Locks the Super Administrator role row (SELECT ... FOR UPDATE) before
    counting holders; the caller must apply the guarded mutation and commit in
    the same transaction. Two concurrent demotions therefore serialize on the
    lock and the second one sees the first one's result.
    """
    role = (
        session.query(Role)
        .filter(Role.name == SUPER_ADMINISTRATOR)
        .with_for_update()
        .first()
    )
    if role is None:
        return
    holder_ids = {
        row.user_id
        for row in session.query(user_roles.c.user_id)
        .filter(user_roles.c.role_id == role.id)
        .all()
    }
    if user_id in holder_ids and len(holder_ids) <= 1:
        logger.warning(
            "Rejected removal of the last Super Administrator",
            extra={"user_id": user_id},
        )
        raise Conflict("At least one user must keep the Super Administrator role")
