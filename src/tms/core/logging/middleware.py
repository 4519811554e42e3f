"""Request context middleware.

Gives each request a correlation id, binds the verified principal to the
log context and writes one completion line per request. Headers and
bodies are never logged: they carry credentials.
"""

import time
import uuid
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tms.core.auth.backend import decode_token
from tms.core.auth.context import AuthState
from tms.core.errors import InvalidTokenError


logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = ("/health/", "/docs", "/redoc", "/openapi.json")


def _principal_from_header(request: Request) -> dict[str, str]:
    """Log fields for a bearer session token, if it verifies.

    Only enriches logs; access decisions happen in the guard dependencies.
    """
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return {}
    try:
        data = decode_token(token)
    except InvalidTokenError:
        return {}

    fields = {"user_id": str(data.subject)}
    if data.tenant_id is not None:
        fields["tenant_id"] = str(data.tenant_id)
    return fields


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id, log context and completion logging.

    The id comes from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response.
    """

    def __init__(self, app: Any, quiet_paths: tuple[str, ...] = QUIET_PATHS) -> None:
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        principal = _principal_from_header(request)
        structlog.contextvars.bind_contextvars(request_id=request_id, **principal)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id", *principal)

        response.headers[REQUEST_ID_HEADER] = request_id

        if not request.url.path.startswith(self.quiet_paths):
            self._log_completion(request, response, started, request_id, principal)
        return response

    @staticmethod
    def _log_completion(
        request: Request,
        response: Response,
        started: float,
        request_id: str,
        principal: dict[str, str],
    ) -> None:
        fields: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "auth_state": str(getattr(request.state, "auth_state", AuthState.UNAUTHENTICATED)),
            "client_ip": get_client_ip(request),
            "request_id": request_id,
            **principal,
        }

        if response.status_code >= 500:
            logger.error("request_completed", **fields)
        elif response.status_code >= 400:
            logger.warning("request_completed", **fields)
        else:
            logger.info("request_completed", **fields)


def get_client_ip(request: Request) -> str | None:
    """Client address, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
