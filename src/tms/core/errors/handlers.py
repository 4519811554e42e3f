"""Exception handlers rendering RFC 7807 problem details.

Every error body has ``type`` (ending in the error code), ``title``,
``status``, ``detail`` and ``instance``, plus ``request_id`` when the
request context middleware assigned one.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from tms.config import settings
from tms.core.errors.exceptions import AppException, UnauthorizedError


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

PROBLEM_JSON = "application/problem+json"


class FieldError(BaseModel):
    """One failing request field."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 body.

    Extension members (``errors``, ``resource``...) are allowed.
    """

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    request_id: str | None = None

    model_config = {"extra": "allow"}


def problem_response(
    request: Request,
    status_code: int,
    error_code: str,
    detail: str,
    *,
    errors: list[FieldError] | None = None,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a problem details response for ``error_code``."""
    problem = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=error_code.replace("_", " ").capitalize(),
        status=status_code,
        detail=detail,
        instance=request.url.path,
        errors=errors,
        request_id=getattr(request.state, "request_id", None),
    )
    content = problem.model_dump(exclude_none=True)
    for key, value in (extra or {}).items():
        content.setdefault(key, value)

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
        media_type=PROBLEM_JSON,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an ``AppException``.

    ``details`` are dropped for 401s so the failure reason never leaks.
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log("request_error", error_code=exc.error_code, status_code=exc.status_code)

    extra = None if isinstance(exc, UnauthorizedError) else exc.details
    return problem_response(
        request,
        exc.status_code,
        exc.error_code,
        exc.message,
        extra=extra,
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures.

    Submitted values are not echoed back: they may include passwords.
    """
    errors = [
        FieldError(
            field=".".join(str(part) for part in error.get("loc", ()) if part != "body")
            or "unknown",
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]
    logger.warning("request_invalid", error_count=len(errors))

    return problem_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        errors=errors,
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """A unique constraint lost a race with a concurrent writer."""
    logger.warning("integrity_conflict", constraint_error=type(exc.orig).__name__)

    return problem_response(
        request,
        status.HTTP_409_CONFLICT,
        "conflict",
        "The resource was modified concurrently",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return problem_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem details handlers on ``app``."""
    handlers: dict[type[Exception], Any] = {
        AppException: app_exception_handler,
        RequestValidationError: validation_exception_handler,
        IntegrityError: integrity_error_handler,
        Exception: unhandled_exception_handler,
    }
    for exc_class, handler in handlers.items():
        app.add_exception_handler(exc_class, cast("ExceptionHandler", handler))
