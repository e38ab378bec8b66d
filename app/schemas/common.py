"""Response envelopes shared by every endpoint: {success, data} / {success: false, error}."""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Machine-readable kind plus a human-readable message."""

    kind: str = Field(..., description="Error kind (e.g. conflict, invalid_token).")
    message: str = Field(..., description="Human-readable error message.")


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    success: Literal[False] = False
    error: ErrorDetail


class DataResponse(BaseModel, Generic[T]):
    """Successful response carrying a single payload."""

    success: Literal[True] = True
    data: T


class OkResponse(BaseModel):
    """Successful response without a payload (logout, verify-email, ...)."""

    success: Literal[True] = True
    data: None = None


class Pagination(BaseModel):
    total: int = Field(..., ge=0, description="Total number of matching records.")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


class PageResponse(BaseModel, Generic[T]):
    """Successful list response with pagination metadata."""

    success: Literal[True] = True
    data: list[T]
    pagination: Pagination
