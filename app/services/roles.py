"""Role administration: list/read/create/update/delete roles and list permissions."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.errors import Conflict, NotFound, ValidationFailed
from app.models import Permission, Role, user_roles
from app.schemas.role import RoleCreateRequest, RoleUpdateRequest
from app.services import credential_store
from app.services.authorization import SUPER_ADMINISTRATOR

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _protected_role_names(settings: "Settings") -> set[str]:
    """Roles the system depends on by name: they can be edited but not renamed or deleted."""
    return {SUPER_ADMINISTRATOR, settings.DEFAULT_ROLE_NAME}


def _resolve_permissions(session: Session, permission_ids: list[int]) -> list[Permission]:
    wanted = set(permission_ids)
    if not wanted:
        return []
    permissions = (
        session.query(Permission).filter(Permission.id.in_(wanted)).order_by(Permission.id).all()
    )
    missing = wanted - {p.id for p in permissions}
    if missing:
        raise ValidationFailed(f"Unknown permission ids: {sorted(missing)}")
    return permissions


def list_permissions(session: Session) -> list[Permission]:
    return session.query(Permission).order_by(Permission.resource, Permission.action).all()


def list_roles(session: Session) -> list[Role]:
    return session.query(Role).options(selectinload(Role.permissions)).order_by(Role.id).all()


def get_role(session: Session, role_id: int) -> Role:
    role = (
        session.query(Role)
        .options(selectinload(Role.permissions))
        .filter(Role.id == role_id)
        .first()
    )
    if role is None:
        raise NotFound("Role not found")
    return role


def create_role(session: Session, body: RoleCreateRequest) -> Role:
    name = body.name.strip()
    if credential_store.get_role_by_name(session, name) is not None:
        raise Conflict("Role name already exists")
    role = Role(name=name, permissions=_resolve_permissions(session, body.permission_ids))
    session.add(role)
    credential_store.commit_or_conflict(session, "Role name already exists")
    logger.info("Role created", extra={"role_id": role.id})
    return get_role(session, role.id)


def update_role(
    session: Session, role_id: int, body: RoleUpdateRequest, settings: "Settings"
) -> Role:
    role = get_role(session, role_id)
    name = body.name.strip() if body.name is not None else role.name
    if name != role.name:
        if role.name in _protected_role_names(settings):
            raise Conflict(f"Role '{role.name}' cannot be renamed")
        if credential_store.get_role_by_name(session, name) is not None:
            raise Conflict("Role name already exists")
    permissions = None
    if body.permission_ids is not None:
        permissions = _resolve_permissions(session, body.permission_ids)

    role.name = name
    if permissions is not None:
        role.permissions = permissions
    credential_store.commit_or_conflict(session, "Role name already exists")
    logger.info("Role updated", extra={"role_id": role_id})
    return get_role(session, role_id)


def delete_role(session: Session, role_id: int, settings: "Settings") -> None:
    """Delete an unassigned, non-protected role."""
    role = get_role(session, role_id)
    if role.name in _protected_role_names(settings):
        raise Conflict(f"Role '{role.name}' cannot be deleted")
    holders = (
        session.query(func.count(user_roles.c.user_id))
        .filter(user_roles.c.role_id == role.id)
        .scalar()
    )
    if holders:
        raise Conflict("Role is still assigned to users")
    session.delete(role)
    session.commit()
    logger.info("Role deleted", extra={"role_id": role_id})
