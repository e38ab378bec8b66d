"""User administration endpoints; every route is gated on a user:* permission."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permission
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models import User
from app.schemas.common import DataResponse, OkResponse, PageResponse, Pagination
from app.schemas.user import UserCreateRequest, UserUpdateRequest, UserView
from app.services import users as user_service

router = APIRouter()


@router.post("", response_model=DataResponse[UserView], status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreateRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    _actor: Annotated[User, Depends(require_permission("user", "create"))],
) -> DataResponse[UserView]:
    user = user_service.create_user(db, body, settings)
    return DataResponse[UserView](data=UserView.model_validate(user))


@router.get("", response_model=PageResponse[UserView])
def list_users(
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("user", "read"))],
    q: Annotated[str | None, Query(max_length=255)] = None,
    limit: Annotated[int, Query(ge=1, le=user_service.MAX_PAGE_LIMIT)] = user_service.DEFAULT_PAGE_LIMIT,
    page: Annotated[int, Query(ge=1)] = 1,
    sort_by: str = "id",
    sort_direction: str = "asc",
) -> PageResponse[UserView]:
    """Search and paginate users (q matches username, email, first or last name)."""
    results, total = user_service.query_users(
        db, q=q, limit=limit, page=page, sort_by=sort_by, sort_direction=sort_direction
    )
    return PageResponse[UserView](
        data=[UserView.model_validate(u) for u in results],
        pagination=Pagination(total=total, page=page, limit=limit),
    )


@router.get("/{user_id}", response_model=DataResponse[UserView])
def get_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("user", "read"))],
) -> DataResponse[UserView]:
    return DataResponse[UserView](data=UserView.model_validate(user_service.get_user(db, user_id)))


@router.patch("/{user_id}", response_model=DataResponse[UserView])
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    _actor: Annotated[User, Depends(require_permission("user", "update"))],
) -> DataResponse[UserView]:
    """Partial update; removing Super Administrator from its last holder is rejected."""
    user = user_service.update_user(db, user_id, body, settings)
    return DataResponse[UserView](data=UserView.model_validate(user))


@router.delete("/{user_id}", response_model=OkResponse)
def delete_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    _actor: Annotated[User, Depends(require_permission("user", "delete"))],
) -> OkResponse:
    user_service.delete_user(db, user_id)
    return OkResponse()
