"""ORM models for store-backed opaque tokens (refresh, email verification, password reset)."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from app.models.base import Base


class _OpaqueTokenColumns:
    """Columns shared by every opaque token table. Only the SHA-256 digest of the token is stored."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class RefreshToken(_OpaqueTokenColumns, Base):
    """Revocable refresh token. Consumed (deleted) on refresh/logout, blacklisted on password reset."""

    __tablename__ = "refresh_tokens"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    blacklisted = Column(Boolean, nullable=False, default=False)


class VerifyEmailToken(_OpaqueTokenColumns, Base):
    """Single-use email verification token."""

    __tablename__ = "verify_email_tokens"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )


class ResetPasswordToken(_OpaqueTokenColumns, Base):
    """Single-use password reset token."""

    __tablename__ = "reset_password_tokens"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
