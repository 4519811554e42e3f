"""User administration routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tms.core.auth.dependencies import CurrentTenantScope
from tms.core.constants import PERM_MANAGE_USERS
from tms.core.permissions.dependencies import require_permission
from tms.modules.users.schemas import (
    SetPasswordRequest,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from tms.modules.users.services import UserSvc


router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_permission(PERM_MANAGE_USERS))],
)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
)
async def list_users(
    scope: CurrentTenantScope,
    service: UserSvc,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> UserListResponse:
    """List the tenant's users."""
    users, total = await service.list_users(scope.tenant_id, page, page_size)
    return UserListResponse(
        items=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Create a user with an initial password in the caller's tenant.",
)
async def create_user(
    data: UserCreate,
    scope: CurrentTenantScope,
    service: UserSvc,
) -> UserResponse:
    """Create a user."""
    user = await service.create_user(data, scope)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user",
)
async def get_user(
    user_id: UUID,
    scope: CurrentTenantScope,
    service: UserSvc,
) -> UserResponse:
    """Get a user of the tenant."""
    user = await service.get_user(user_id, scope.tenant_id)
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description=(
        "Change name, profile or active flag. A new profile applies from the "
        "user's next login or refresh."
    ),
)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    scope: CurrentTenantScope,
    service: UserSvc,
) -> UserResponse:
    """Update a user."""
    user = await service.update_user(user_id, data, scope)
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Set user password",
)
async def set_password(
    user_id: UUID,
    data: SetPasswordRequest,
    scope: CurrentTenantScope,
    service: UserSvc,
) -> None:
    """Set a user's password."""
    await service.set_password(user_id, data.password, scope)


@router.delete(
    "/{user_id}",
    response_model=UserResponse,
    summary="Deactivate user",
    description="Soft-delete: the user can no longer log in or refresh.",
)
async def deactivate_user(
    user_id: UUID,
    scope: CurrentTenantScope,
    service: UserSvc,
) -> UserResponse:
    """Deactivate a user."""
    user = await service.deactivate_user(user_id, scope)
    return UserResponse.model_validate(user)
