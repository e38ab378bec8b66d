"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.security import USERNAME_MAX_LEN, USERNAME_MIN_LEN
from app.schemas.user import UserView


class SignupRequest(BaseModel):
    """Self-service registration. Password policy (length) is enforced by the signup workflow."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=1024, description="Password")
    first_name: str = Field(default="", max_length=255)
    last_name: str = Field(default="", max_length=255)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class SigninRequest(BaseModel):
    """Credentials for signin. The username is stripped the same way signup stores it."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    password: str = Field(..., min_length=1, max_length=1024, description="Password")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class RefreshTokenRequest(BaseModel):
    """Body for logout and refresh-tokens."""

    refresh_token: str = Field(..., min_length=1, max_length=512)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=512)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=512)
    password: str = Field(..., min_length=1, max_length=1024)


class TokenView(BaseModel):
    """One issued credential and its expiry."""

    token: str
    expires: datetime


class AuthTokens(BaseModel):
    """Access + refresh token pair returned by signin and refresh."""

    access: TokenView
    refresh: TokenView
    token_type: str = Field(default="bearer", description="Token type")


class SigninData(BaseModel):
    """Payload of a successful signin."""

    user: UserView
    tokens: AuthTokens
