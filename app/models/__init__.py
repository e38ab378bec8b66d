"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.role import Permission, Role, role_permissions
from app.models.token import RefreshToken, ResetPasswordToken, VerifyEmailToken
from app.models.user import User, user_roles

__all__ = [
    "Base",
    "Permission",
    "RefreshToken",
    "ResetPasswordToken",
    "Role",
    "User",
    "VerifyEmailToken",
    "role_permissions",
    "user_roles",
]
