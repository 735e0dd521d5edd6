"""RFC 7807 Problem Details exception handlers.

Maps the placement error taxonomy onto HTTP responses:
not-found errors become 404, capacity and state errors 4xx, and
storage or migration failures 5xx with a ``Retry-After`` hint.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings
from app.core.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

RETRY_AFTER_SECONDS = 5


class FieldError(BaseModel):
    """Represents a single field validation error."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        instance: URI reference identifying this specific occurrence
        errors: List of field-level errors (for validation errors)
        trace_id: Request trace ID for debugging
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}


def _get_trace_id(request: Request) -> str | None:
    """Extract trace ID from request state if available."""
    return getattr(request.state, "request_id", None)


def _get_error_type_uri(error_code: str) -> str:
    """Generate a URI for the error type."""
    return f"{settings.api_docs_base_url}/errors/{error_code}"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application-specific exceptions.

    Server-side failures are logged at error level with the chained cause;
    client errors are logged as warnings.
    """
    log_method = logger.error if exc.status_code >= 500 else logger.warning
    log_method(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        path=str(request.url.path),
        details=exc.details,
        cause=repr(exc.__cause__) if exc.__cause__ else None,
    )

    content: dict[str, Any] = ProblemDetail(
        type=_get_error_type_uri(exc.error_code),
        title=exc.error_code.replace("_", " ").title(),
        status=exc.status_code,
        detail=exc.message,
        instance=str(request.url.path),
        trace_id=_get_trace_id(request),
    ).model_dump(exclude_none=True)

    for key, value in exc.details.items():
        if key not in content:
            content[key] = value

    headers: dict[str, str] | None = None
    if exc.details.get("retryable"):
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    errors: list[FieldError] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_parts = [str(part) for part in loc if part != "body"]
        errors.append(
            FieldError(
                field=".".join(field_parts) if field_parts else "unknown",
                message=error.get("msg", "Invalid value"),
                type=error.get("type"),
            )
        )

    logger.warning(
        "validation_error",
        path=str(request.url.path),
        error_count=len(errors),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ProblemDetail(
            type=_get_error_type_uri("validation_error"),
            title="Validation Error",
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Request validation failed",
            instance=str(request.url.path),
            errors=errors,
            trace_id=_get_trace_id(request),
        ).model_dump(exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals to clients."""
    logger.exception(
        "unhandled_exception",
        path=str(request.url.path),
        error_type=type(exc).__name__,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ProblemDetail(
            type=_get_error_type_uri("internal_error"),
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred",
            instance=str(request.url.path),
            trace_id=_get_trace_id(request),
        ).model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
