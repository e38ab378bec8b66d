"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthTokens,
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SigninData,
    SigninRequest,
    SignupRequest,
    TokenView,
    VerifyEmailRequest,
)
from app.schemas.common import DataResponse, ErrorResponse, OkResponse, PageResponse, Pagination
from app.schemas.health import HealthResponse
from app.schemas.role import RoleCreateRequest, RoleUpdateRequest, RoleView
from app.schemas.user import (
    PermissionView,
    RoleSummary,
    UserCreateRequest,
    UserUpdateRequest,
    UserView,
)

__all__ = [
    "AuthTokens",
    "DataResponse",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "HealthResponse",
    "OkResponse",
    "PageResponse",
    "Pagination",
    "PermissionView",
    "RefreshTokenRequest",
    "ResetPasswordRequest",
    "RoleCreateRequest",
    "RoleSummary",
    "RoleUpdateRequest",
    "RoleView",
    "SigninData",
    "SigninRequest",
    "SignupRequest",
    "TokenView",
    "VerifyEmailRequest",
    "UserCreateRequest",
    "UserUpdateRequest",
    "UserView",
]
