"""Auth endpoints and auth dependencies (get_current_user, require_permission)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import Forbidden, InvalidToken, Unauthorized
from app.models import User
from app.schemas.auth import (
    AuthTokens,
    ForgotPasswordRequest,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SigninData,
    SigninRequest,
    SignupRequest,
    VerifyEmailRequest,
)
from app.schemas.common import DataResponse, OkResponse
from app.schemas.user import UserView
from app.services import auth as auth_service
from app.services import credential_store, mailer, tokens
from app.services.authorization import can

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Dependency: require a valid Bearer access token and return the hydrated user."""
    if credentials is None:
        raise Unauthorized("Not authenticated")
    try:
        user_id = tokens.verify_access_token(credentials.credentials)
    except InvalidToken as e:
        raise Unauthorized("Invalid or expired token") from e
    user = credential_store.get_user_by_id(db, user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user


def require_permission(resource: str, action: str) -> Callable[..., User]:
    """Dependency factory: the current user must hold a role granting (resource, action)."""

    def _dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if not can(current_user, resource, action):
            raise Forbidden(f"Missing permission {resource}:{action}")
        return current_user

    return _dependency


@router.post(
    "/signup",
    response_model=DataResponse[UserView],
    status_code=status.HTTP_201_CREATED,
)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[UserView]:
    """Register a new user with the default role. Sign in afterwards to obtain tokens."""
    user = auth_service.signup(db, body, settings)
    return DataResponse[UserView](data=UserView.model_validate(user))


@router.post("/signin", response_model=DataResponse[SigninData])
def signin(
    body: SigninRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[SigninData]:
    """
    Authenticate with username and password; returns the user plus an access/refresh token pair.
    Include the access token in the Authorization header as: Bearer <token>
    """
    user, auth_tokens = auth_service.signin(db, body.username, body.password, settings)
    return DataResponse[SigninData](
        data=SigninData(user=UserView.model_validate(user), tokens=auth_tokens)
    )


@router.get("/me", response_model=DataResponse[UserView])
def me(current_user: Annotated[User, Depends(get_current_user)]) -> DataResponse[UserView]:
    """Return the authenticated user."""
    return DataResponse[UserView](data=UserView.model_validate(current_user))


@router.post("/logout", response_model=OkResponse)
def logout(
    body: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
) -> OkResponse:
    """Revoke the given refresh token."""
    auth_service.logout(db, body.refresh_token)
    return OkResponse()


@router.post("/refresh-tokens", response_model=DataResponse[AuthTokens])
def refresh_tokens(
    body: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[AuthTokens]:
    """Exchange a refresh token for a new pair; the presented refresh token stops working."""
    return DataResponse[AuthTokens](data=auth_service.refresh(db, body.refresh_token, settings))


@router.post("/send-verification-email", response_model=OkResponse)
def send_verification_email(
    background_tasks: BackgroundTasks,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OkResponse:
    """Email a verification link to the authenticated user."""
    token = auth_service.request_email_verification(db, current_user, settings)
    background_tasks.add_task(mailer.send_verification_email, settings, current_user.email, token)
    return OkResponse()


@router.post("/verify-email", response_model=OkResponse)
def verify_email(
    body: VerifyEmailRequest,
    db: Annotated[Session, Depends(get_db)],
) -> OkResponse:
    """Confirm the email address owning the token."""
    auth_service.verify_email(db, body.token)
    return OkResponse()


@router.post("/forgot-password", response_model=OkResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OkResponse:
    """Email a password reset link. The response is the same whether or not the email is registered."""
    issued = auth_service.forgot_password(db, body.email, settings)
    if issued is not None:
        user, token = issued
        background_tasks.add_task(mailer.send_reset_password_email, settings, user.email, token)
    return OkResponse()


@router.post("/reset-password", response_model=OkResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OkResponse:
    """Set a new password using a reset token; signs the user out everywhere."""
    auth_service.reset_password(db, body.token, body.password, settings)
    return OkResponse()
