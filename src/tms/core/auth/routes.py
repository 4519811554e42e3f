"""Authentication API routes.

Provides endpoints for:
- Password and identity provider login
- Session refresh
- The caller's own context, permissions, name and password
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from tms.api.dependencies import DBSession
from tms.core.auth.dependencies import CurrentAuth, CurrentTenantScope, bearer_scheme
from tms.core.auth.external import ExternalIdentityValidator, get_external_identity_validator
from tms.core.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshTokenRequest,
)
from tms.core.auth.service import AuthSvc
from tms.core.errors import UnauthenticatedError
from tms.core.permissions.resolver import PermissionResolver
from tms.modules.roles.schemas import RoleResponse
from tms.modules.users.schemas import UserResponse, UserSelfUpdate
from tms.modules.users.services import UserSvc


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login with email and password",
    description="Authenticate with email and password to receive access and refresh tokens.",
)
async def login(data: LoginRequest, service: AuthSvc) -> LoginResponse:
    """Login with email and password."""
    return await service.login(email=data.email, password=data.password)


@router.post(
    "/external/login",
    response_model=LoginResponse,
    summary="Login with an identity provider token",
    description="Exchange a bearer token issued by the identity provider for a session.",
)
async def external_login(
    service: AuthSvc,
    validator: Annotated[ExternalIdentityValidator, Depends(get_external_identity_validator)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> LoginResponse:
    """Login with an identity provider token."""
    if not credentials or not credentials.credentials:
        raise UnauthenticatedError()

    assertion = await validator.validate(credentials.credentials)
    return await service.login_external(assertion)


@router.post(
    "/refresh",
    response_model=LoginResponse,
    summary="Refresh the session",
    description="Mint a new token pair with tenant, profile and permissions re-read from storage.",
)
async def refresh_token(data: RefreshTokenRequest, service: AuthSvc) -> LoginResponse:
    """Refresh the session."""
    return await service.refresh(data.refresh_token)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current session",
    description="Returns the claims of the caller's verified access token.",
)
async def get_me(auth: CurrentAuth) -> MeResponse:
    """Get the current session's claims."""
    return MeResponse(
        id=auth.user_id,
        email=auth.email,
        tenant_id=auth.tenant_id,
        profile_id=auth.profile_id,
        permissions=sorted(auth.permissions),
    )


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update own account",
    description="Change the caller's display name. Profile and status are administrator-only.",
)
async def update_me(
    data: UserSelfUpdate,
    scope: CurrentTenantScope,
    service: UserSvc,
) -> UserResponse:
    """Update the caller's own account."""
    user = await service.update_self(data, scope)
    return UserResponse.model_validate(user)


@router.get(
    "/me/permissions",
    response_model=list[RoleResponse],
    summary="Describe current permissions",
    description="Resolves the caller's role ids into codes and names for display.",
)
async def get_my_permissions(auth: CurrentAuth, db: DBSession) -> list[RoleResponse]:
    """Describe the caller's roles."""
    roles = await PermissionResolver(db).roles_by_ids(auth.permissions, auth.require_tenant())
    return [RoleResponse.model_validate(role) for role in roles]


@router.post(
    "/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
    description="Change the caller's password. The current password is required.",
)
async def change_password(
    data: ChangePasswordRequest,
    scope: CurrentTenantScope,
    service: AuthSvc,
) -> None:
    """Change the caller's own password."""
    await service.change_password(
        user_id=scope.user_id,
        tenant_id=scope.tenant_id,
        current_password=data.current_password,
        new_password=data.new_password,
    )
