"""Profile administration routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from tms.core.auth.dependencies import CurrentTenantScope
from tms.core.constants import PERM_MANAGE_PROFILES
from tms.core.permissions.dependencies import require_permission
from tms.modules.profiles.schemas import (
    AssignRolesRequest,
    AvailableRoleResponse,
    ProfileCreate,
    ProfileDetailResponse,
    ProfileResponse,
    ProfileRolesResponse,
    ProfileUpdate,
)
from tms.modules.profiles.services import ProfileSvc
from tms.modules.roles.schemas import RoleResponse


router = APIRouter(
    prefix="/profiles",
    tags=["profiles"],
    dependencies=[Depends(require_permission(PERM_MANAGE_PROFILES))],
)


@router.get(
    "",
    response_model=list[ProfileResponse],
    summary="List profiles",
)
async def list_profiles(scope: CurrentTenantScope, service: ProfileSvc) -> list[ProfileResponse]:
    """List the tenant's profiles."""
    profiles = await service.list_profiles(scope.tenant_id)
    return [ProfileResponse.model_validate(profile) for profile in profiles]


@router.post(
    "",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create profile",
    description="Create an empty profile in the caller's tenant.",
)
async def create_profile(
    data: ProfileCreate,
    scope: CurrentTenantScope,
    service: ProfileSvc,
) -> ProfileResponse:
    """Create a profile."""
    profile = await service.create_profile(data, scope)
    return ProfileResponse.model_validate(profile)


@router.get(
    "/{profile_id}",
    response_model=ProfileDetailResponse,
    summary="Get profile",
    description="A profile of the caller's tenant with the active roles it grants.",
)
async def get_profile(
    profile_id: UUID,
    scope: CurrentTenantScope,
    service: ProfileSvc,
) -> ProfileDetailResponse:
    """Get a profile and its roles."""
    profile, roles = await service.get_profile_roles(profile_id, scope.tenant_id)
    return ProfileDetailResponse(
        **ProfileResponse.model_validate(profile).model_dump(),
        roles=[RoleResponse.model_validate(role) for role in roles],
    )


@router.put(
    "/{profile_id}",
    response_model=ProfileResponse,
    summary="Update profile",
)
async def update_profile(
    profile_id: UUID,
    data: ProfileUpdate,
    scope: CurrentTenantScope,
    service: ProfileSvc,
) -> ProfileResponse:
    """Update a profile."""
    profile = await service.update_profile(profile_id, data, scope)
    return ProfileResponse.model_validate(profile)


@router.delete(
    "/{profile_id}",
    response_model=ProfileResponse,
    summary="Deactivate profile",
    description="Soft-delete: holders of the profile are granted nothing from their next refresh.",
)
async def deactivate_profile(
    profile_id: UUID,
    scope: CurrentTenantScope,
    service: ProfileSvc,
) -> ProfileResponse:
    """Deactivate a profile."""
    profile = await service.deactivate_profile(profile_id, scope)
    return ProfileResponse.model_validate(profile)


@router.put(
    "/{profile_id}/roles",
    response_model=ProfileRolesResponse,
    summary="Replace profile roles",
    description=(
        "Replace the complete role set of a profile. Users holding the profile "
        "see the change at their next login or refresh."
    ),
)
async def assign_roles(
    profile_id: UUID,
    data: AssignRolesRequest,
    scope: CurrentTenantScope,
    service: ProfileSvc,
) -> ProfileRolesResponse:
    """Replace the roles of a profile."""
    role_ids = await service.assign_roles(profile_id, data.role_ids, scope)
    return ProfileRolesResponse(profile_id=profile_id, role_ids=role_ids)


@router.get(
    "/{profile_id}/available-roles",
    response_model=list[AvailableRoleResponse],
    summary="List roles available to a profile",
)
async def available_roles(
    profile_id: UUID,
    scope: CurrentTenantScope,
    service: ProfileSvc,
) -> list[AvailableRoleResponse]:
    """List assignable roles with an ``assigned`` flag."""
    pairs = await service.available_roles(profile_id, scope.tenant_id)
    return [
        AvailableRoleResponse(
            **RoleResponse.model_validate(role).model_dump(),
            assigned=assigned,
        )
        for role, assigned in pairs
    ]
