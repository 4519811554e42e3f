"""Application errors and their problem details rendering."""

from tms.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    TenantContextMissingError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from tms.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    problem_response,
    register_exception_handlers,
)


__all__ = [
    "AppException",
    "BadRequestError",
    "ConflictError",
    "FieldError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotFoundError",
    "ProblemDetail",
    "TenantContextMissingError",
    "UnauthenticatedError",
    "UnauthorizedError",
    "ValidationError",
    "problem_response",
    "register_exception_handlers",
]
