"""Application exceptions mapped to problem-details responses.

Every class fixes an HTTP status and a machine-readable ``error_code``.
The code doubles as the last segment of the problem ``type`` URI, so
clients branch on it instead of parsing messages.

Authentication failures carry one generic message per category. The
concrete reason (expired, bad signature, inactive account...) is logged
where it is detected and never reaches the response body.
"""

from typing import Any


class AppException(Exception):
    """Base class for errors rendered as problem details.

    Attributes:
        message: Human-readable summary returned as ``detail``
        error_code: Stable identifier returned in the problem ``type``
        status_code: HTTP status of the response
        details: Extra members merged into the problem body
        headers: Extra response headers
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500
    headers: dict[str, str] | None = None

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(error_code={self.error_code!r})"


# ------------------------------------------------------------------
# 4xx: caller mistakes
# ------------------------------------------------------------------


class BadRequestError(AppException):
    """The request references something that cannot be used.

    Example: a role id from another tenant in a profile assignment.
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class TenantContextMissingError(AppException):
    """A verified caller has no tenant and the operation needs one.

    Tenant context is never defaulted.
    """

    message = "Tenant context is required for this operation"
    error_code = "tenant_context_missing"
    status_code = 400


class NotFoundError(AppException):
    """A tenant-scoped lookup found nothing.

    Records of other tenants are reported the same way as missing ones.
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", None) or {}
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ValidationError(AppException):
    """Input passed schema validation but failed a domain rule.

    ``errors`` follows the same field/message shape as request
    validation failures.
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", None) or {}
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


# ------------------------------------------------------------------
# 401 / 403: identity and authorization
# ------------------------------------------------------------------


class UnauthorizedError(AppException):
    """Base for every 401.

    ``details`` is never rendered for this family.
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsError(UnauthorizedError):
    """Password login failed.

    Unknown email, wrong password and inactive account look the same.
    """

    message = "Invalid email or password"
    error_code = "invalid_credentials"


class UnauthenticatedError(UnauthorizedError):
    """No usable identity: missing bearer or a rejected provider token."""

    message = "Authentication required"
    error_code = "unauthenticated"


class InvalidTokenError(UnauthenticatedError):
    """A session token failed verification, whatever the reason."""

    message = "Invalid or expired token"
    error_code = "invalid_token"


class ForbiddenError(AppException):
    """The caller is known but lacks the required permission."""

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403
