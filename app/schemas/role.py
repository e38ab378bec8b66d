"""Request/response schemas for roles and permissions."""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.user import PermissionView


class RoleView(BaseModel):
    """Role with its permissions."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    permissions: list[PermissionView] = Field(default_factory=list)


class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    permission_ids: list[int] = Field(default_factory=list)


class RoleUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=64)
    permission_ids: list[int] | None = None
