"""Role and permission endpoints; gated on role:* permissions."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permission
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models import User
from app.schemas.common import DataResponse, OkResponse
from app.schemas.role import RoleCreateRequest, RoleUpdateRequest, RoleView
from app.schemas.user import PermissionView
from app.services import roles as role_service

router = APIRouter()


@router.get("", response_model=DataResponse[list[RoleView]])
def list_roles(
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("role", "read"))],
) -> DataResponse[list[RoleView]]:
    return DataResponse[list[RoleView]](
        data=[RoleView.model_validate(r) for r in role_service.list_roles(db)]
    )


@router.get("/permissions", response_model=DataResponse[list[PermissionView]])
def list_permissions(
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("role", "read"))],
) -> DataResponse[list[PermissionView]]:
    """The closed set of (resource, action) pairs roles can be built from."""
    return DataResponse[list[PermissionView]](
        data=[PermissionView.model_validate(p) for p in role_service.list_permissions(db)]
    )


@router.post("", response_model=DataResponse[RoleView], status_code=status.HTTP_201_CREATED)
def create_role(
    body: RoleCreateRequest,
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("role", "create"))],
) -> DataResponse[RoleView]:
    return DataResponse[RoleView](data=RoleView.model_validate(role_service.create_role(db, body)))


@router.get("/{role_id}", response_model=DataResponse[RoleView])
def get_role(
    role_id: int,
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("role", "read"))],
) -> DataResponse[RoleView]:
    return DataResponse[RoleView](data=RoleView.model_validate(role_service.get_role(db, role_id)))


@router.patch("/{role_id}", response_model=DataResponse[RoleView])
def update_role(
    role_id: int,
    body: RoleUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    _actor: Annotated[User, Depends(require_permission("role", "update"))],
) -> DataResponse[RoleView]:
    role = role_service.update_role(db, role_id, body, settings)
    return DataResponse[RoleView](data=RoleView.model_validate(role))


@router.delete("/{role_id}", response_model=OkResponse)
def delete_role(
    role_id: int,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    _actor: Annotated[User, Depends(require_permission("role", "delete"))],
) -> OkResponse:
    role_service.delete_role(db, role_id, settings)
    return OkResponse()
