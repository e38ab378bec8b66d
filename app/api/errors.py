"""Map ServiceError kinds to HTTP status codes and the {success: false, error} envelope."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import ErrorKind, ServiceError
from app.schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_REVOKED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VERIFICATION_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Token-specific kinds collapse into one kind and message at the boundary.
GENERIC_TOKEN_KINDS = frozenset(
    {ErrorKind.INVALID_TOKEN, ErrorKind.TOKEN_EXPIRED, ErrorKind.TOKEN_REVOKED}
)
GENERIC_TOKEN_MESSAGE = "Invalid or expired token"
GENERIC_SERVER_MESSAGE = "Internal server error"


def error_response(kind: ErrorKind, message: str, status_code: int) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(kind=kind.value, message=message))
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    kind = exc.kind
    message = exc.message
    if kind in GENERIC_TOKEN_KINDS:
        kind, message = ErrorKind.INVALID_TOKEN, GENERIC_TOKEN_MESSAGE
    elif kind is ErrorKind.INTERNAL:
        logger.error("Service error on %s %s: %s", request.method, request.url.path, exc.message)
        message = GENERIC_SERVER_MESSAGE
    return error_response(kind, message, STATUS_BY_KIND[kind])


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "Invalid request")
    message = f"{location}: {detail}" if location else detail
    return error_response(ErrorKind.VALIDATION, message, status.HTTP_400_BAD_REQUEST)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        ErrorKind.INTERNAL, GENERIC_SERVER_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
