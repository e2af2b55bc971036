"""
Exception handlers producing the uniform error envelope.

Every error response has the shape::

    {"error": {"message": str, "code": str, "errors"?: {field: message}, "stack"?: str}}

`stack` is only included outside production.
"""
import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from services.exceptions import AppError, InternalError, ValidationError

logger = logging.getLogger(__name__)

# Codes for HTTPExceptions raised by the framework itself (unknown route, bad method, ...)
HTTP_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
}


def build_error_body(
    message: str,
    code: str,
    errors: dict[str, str] | None = None,
    exc: BaseException | None = None,
    include_stack: bool = False,
) -> dict[str, Any]:
    """Build the `{"error": {...}}` response body."""
    body: dict[str, Any] = {"message": message, "code": code}
    if errors:
        body["errors"] = errors
    if include_stack and exc is not None:
        body["stack"] = "".join(traceback.format_exception(exc))
    return {"error": body}


def _include_stack() -> bool:
    return not get_settings().is_production


def _error_response(
    status_code: int,
    message: str,
    code: str,
    exc: BaseException,
    errors: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=build_error_body(message, code, errors, exc, _include_stack()),
        headers=headers,
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    # loc is e.g. ("body", "url") or ("query", "limit"); drop the source part
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    """Map a service-layer AppError to its status code and envelope."""
    errors = exc.errors if isinstance(exc, ValidationError) else None
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return _error_response(exc.status_code, exc.message, exc.code, exc, errors, headers)


async def request_validation_error_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Report request schema failures as VALIDATION_ERROR with field-level messages."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = _field_name(tuple(error.get("loc", ())))
        errors.setdefault(field, error.get("msg", "Invalid value"))
    return _error_response(
        ValidationError.status_code,
        ValidationError.default_message,
        ValidationError.code,
        exc,
        errors,
    )


async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Wrap framework HTTPExceptions in the envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    code = HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    headers = getattr(exc, "headers", None)
    return _error_response(exc.status_code, message, code, exc, headers=headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions and report them as a generic 500."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        InternalError.status_code,
        InternalError.default_message,
        InternalError.code,
        exc,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install all envelope handlers on the app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
