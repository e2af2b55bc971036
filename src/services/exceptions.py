"""
Shared exceptions for service layer operations.

Services raise these typed errors; the API layer (api/errors.py) maps each
one to its HTTP status and the uniform `{"error": {...}}` envelope.
"""


class AppError(Exception):
    """Base class for errors that carry an HTTP status and a stable error code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AppError):
    """Malformed input that request-schema validation does not catch."""

    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Bad request"


class UnauthorizedError(AppError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    """Authenticated, but the resource belongs to another user."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(AppError):
    """No such entity."""

    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(AppError):
    """Duplicate value for a unique key."""

    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class ValidationError(AppError):
    """
    Input rejected by validation.

    Carries field-level messages in `errors` (field name -> message).
    """

    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        self.errors = errors or {}
        super().__init__(message)


class InternalError(AppError):
    """Unexpected server-side failure."""
