"""Typed service errors. The HTTP layer maps ErrorKind to status codes; services never do."""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable error kind carried across the service/HTTP boundary."""

    VALIDATION = "validation_error"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_TOKEN = "invalid_token"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_REVOKED = "token_revoked"
    VERIFICATION_FAILED = "verification_failed"
    NOT_FOUND = "not_found"
    INTERNAL = "internal_error"


class ServiceError(Exception):
    """Base class for expected failures raised by services."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(ServiceError):
    """Malformed or out-of-policy input."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class Conflict(ServiceError):
    """Uniqueness violation or a mutation that would break a store invariant."""

    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class InvalidCredentials(ServiceError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Incorrect username or password"


class Unauthorized(ServiceError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(ServiceError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"


class InvalidToken(ServiceError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Invalid token"


class TokenExpired(InvalidToken):
    kind = ErrorKind.TOKEN_EXPIRED
    default_message = "Token expired"


class TokenRevoked(InvalidToken):
    kind = ErrorKind.TOKEN_REVOKED
    default_message = "Token revoked"


class VerificationFailed(ServiceError):
    kind = ErrorKind.VERIFICATION_FAILED
    default_message = "Email verification failed"


class NotFound(ServiceError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"
