"""Request/response schemas for users. UserView is the only serialized form of a User (no password hash)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import USERNAME_MAX_LEN, USERNAME_MIN_LEN


class PermissionView(BaseModel):
    """A (resource, action) capability."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    resource: str
    action: str


class RoleSummary(BaseModel):
    """Role reference embedded in a user view."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class UserView(BaseModel):
    """Public representation of a user; built explicitly from the ORM object, never includes password_hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    avatar: str
    confirmed: bool
    roles: list[RoleSummary] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreateRequest(BaseModel):
    """Admin user creation. role_ids defaults to the default role when omitted."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=1024)
    first_name: str = Field(default="", max_length=255)
    last_name: str = Field(default="", max_length=255)
    avatar: str | None = Field(default=None, max_length=1024)
    role_ids: list[int] | None = Field(default=None, description="Ids of roles to assign.")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserUpdateRequest(BaseModel):
    """Partial update; only fields that are sent are applied."""

    username: str | None = Field(default=None, min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=1, max_length=1024)
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    avatar: str | None = Field(default=None, max_length=1024)
    confirmed: bool | None = None
    role_ids: list[int] | None = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v
