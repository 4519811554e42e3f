"""Permission dependencies for route protection.

Usage:
    @router.post("/users", dependencies=[Depends(require_permission("gestionar_usuarios"))])
    async def create_user(...):
        ...

The dependency runs before the handler body, so a forbidden request
never reaches the resource operation.
"""

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request

from tms.api.dependencies import DBSession
from tms.core.auth.context import AuthContext, AuthState
from tms.core.auth.dependencies import CurrentAuth
from tms.core.errors import ForbiddenError
from tms.core.observability import get_tracer
from tms.core.permissions.resolver import PermissionResolver
from tms.core.permissions.types import RoleCode


logger = structlog.get_logger()
tracer = get_tracer(__name__)


async def _check_codes(
    request: Request,
    auth: AuthContext,
    db: DBSession,
    codes: tuple[str, ...],
) -> AuthContext:
    tenant_id = auth.require_tenant()
    resolver = PermissionResolver(db)

    with tracer.start_as_current_span("authz.require_permission") as span:
        span.set_attribute("authz.codes", list(codes))
        for code in codes:
            granted = await resolver.role_ids_for_code(RoleCode(code), tenant_id)
            if not auth.permissions.isdisjoint(granted):
                span.set_attribute("authz.granted_by", code)
                request.state.auth_state = AuthState.AUTHORIZED
                return auth
        span.set_attribute("authz.granted_by", "")

    request.state.auth_state = AuthState.FORBIDDEN
    logger.warning(
        "permission_denied",
        required=list(codes),
        path=request.url.path,
    )
    raise ForbiddenError("Insufficient permissions", error_code="permission_denied")


def require_permission(code: str) -> Callable[..., Awaitable[AuthContext]]:
    """Dependency factory requiring one permission code.

    Args:
        code: The readable permission key (e.g. ``ver_dashboard``)

    Returns:
        A dependency returning the verified context

    Raises:
        ForbiddenError: If no role id carrying ``code`` is in the token
    """

    async def dependency(request: Request, auth: CurrentAuth, db: DBSession) -> AuthContext:
        return await _check_codes(request, auth, db, (code,))

    return dependency


def require_any_permission(*codes: str) -> Callable[..., Awaitable[AuthContext]]:
    """Dependency factory requiring at least one of several permission codes."""

    async def dependency(request: Request, auth: CurrentAuth, db: DBSession) -> AuthContext:
        return await _check_codes(request, auth, db, codes)

    return dependency
