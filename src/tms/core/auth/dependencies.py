"""FastAPI dependencies for authentication.

This module provides FastAPI dependency injection functions for:
- Extracting and verifying the bearer access token
- Exposing the verified context to handlers
- Getting the tenant a request acts in

The tenant always comes from the verified token, never from a
client-supplied parameter.
"""

from typing import Annotated

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tms.core.auth.backend import decode_token
from tms.core.auth.context import AuthContext, AuthState, TenantScope
from tms.core.errors import InvalidTokenError, UnauthenticatedError


logger = structlog.get_logger()

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_context(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AuthContext:
    """Verify the bearer token and return its claims.

    Args:
        request: The incoming request, used to record the auth state
        credentials: Bearer token credentials from the request

    Returns:
        The verified context

    Raises:
        UnauthenticatedError: If the token is missing
        InvalidTokenError: If the token fails verification
    """
    request.state.auth_state = AuthState.UNAUTHENTICATED
    if not credentials or not credentials.credentials:
        raise UnauthenticatedError()

    request.state.auth_state = AuthState.TOKEN_PRESENTED
    try:
        token_data = decode_token(credentials.credentials)
    except InvalidTokenError:
        request.state.auth_state = AuthState.REJECTED
        raise

    request.state.auth_state = AuthState.VERIFIED
    request.state.user_id = token_data.subject
    request.state.tenant_id = token_data.tenant_id

    return AuthContext(
        user_id=token_data.subject,
        email=token_data.email,
        tenant_id=token_data.tenant_id,
        profile_id=token_data.profile_id,
        permissions=token_data.permissions,
    )


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]


async def get_tenant_scope(auth: CurrentAuth) -> TenantScope:
    """Build the context handed to resource services.

    Raises:
        TenantContextMissingError: If the token carries no tenant
    """
    return TenantScope(
        tenant_id=auth.require_tenant(),
        user_id=auth.user_id,
        permissions=auth.permissions,
    )


# Type aliases for cleaner dependency injection
CurrentTenantScope = Annotated[TenantScope, Depends(get_tenant_scope)]
