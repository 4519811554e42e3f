"""Profile service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from tms.api.dependencies import DBSession
from tms.core.audit import AuditService
from tms.core.auth.context import TenantScope
from tms.core.errors import BadRequestError, ConflictError, NotFoundError
from tms.modules.profiles.models import Profile
from tms.modules.profiles.repos import ProfileRepository
from tms.modules.profiles.schemas import ProfileCreate, ProfileUpdate
from tms.modules.roles.models import Role
from tms.modules.roles.repos import RoleRepository


logger = structlog.get_logger()


class ProfileService:
    """Service for profile administration within a tenant.

    Role changes take effect for a user at their next login or refresh;
    access tokens already issued keep their embedded permissions.
    """

    def __init__(self, db: DBSession) -> None:
        self.repo = ProfileRepository(db)
        self.roles = RoleRepository(db)
        self.audit = AuditService(db)

    async def _check_name_free(self, name: str, tenant_id: UUID) -> None:
        if await self.repo.get_by_name(name, tenant_id) is not None:
            raise ConflictError(
                "Profile name already exists",
                error_code="profile_name_exists",
                details={"name": name},
            )

    async def get_profile(self, profile_id: UUID, tenant_id: UUID) -> Profile:
        """Get a profile of the tenant.

        Raises:
            NotFoundError: If the profile is not in the tenant
        """
        profile = await self.repo.get_by_id(profile_id, tenant_id)
        if profile is None:
            raise NotFoundError(
                "Profile not found",
                resource="profile",
                resource_id=str(profile_id),
            )
        return profile

    async def get_profile_roles(
        self, profile_id: UUID, tenant_id: UUID
    ) -> tuple[Profile, list[Role]]:
        """Get a profile of the tenant with the active roles it grants."""
        profile = await self.get_profile(profile_id, tenant_id)
        roles = await self.roles.get_active_by_ids(await self.repo.role_ids(profile.id), tenant_id)
        roles.sort(key=lambda role: (role.module, role.sort_order, role.code))
        return profile, roles

    async def list_profiles(self, tenant_id: UUID) -> list[Profile]:
        """List the tenant's profiles."""
        return await self.repo.list_by_tenant(tenant_id)

    async def create_profile(self, data: ProfileCreate, scope: TenantScope) -> Profile:
        """Create an empty, active profile in the tenant.

        Raises:
            ConflictError: If the tenant already has a profile with this name
        """
        await self._check_name_free(data.name, scope.tenant_id)

        profile = await self.repo.create(
            Profile(
                name=data.name,
                description=data.description,
                is_active=True,
                tenant_id=scope.tenant_id,
            )
        )
        await self.audit.record(
            "create_profile",
            "profile",
            profile.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
        )
        return profile

    async def update_profile(
        self, profile_id: UUID, data: ProfileUpdate, scope: TenantScope
    ) -> Profile:
        """Rename, describe, activate or deactivate a profile.

        Raises:
            NotFoundError: If the profile is not in the tenant
            ConflictError: If the new name is taken in the tenant
        """
        profile = await self.get_profile(profile_id, scope.tenant_id)
        changes = data.model_dump(exclude_none=True)

        if "name" in changes and changes["name"] != profile.name:
            await self._check_name_free(changes["name"], scope.tenant_id)
        for field, value in changes.items():
            setattr(profile, field, value)

        profile = await self.repo.update(profile)
        await self.audit.record(
            "update_profile",
            "profile",
            profile.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata={"fields": sorted(changes)},
        )
        return profile

    async def deactivate_profile(self, profile_id: UUID, scope: TenantScope) -> Profile:
        """Soft-delete a profile. Its holders lose its roles at their next refresh.

        Raises:
            NotFoundError: If the profile is not in the tenant
        """
        profile = await self.get_profile(profile_id, scope.tenant_id)
        profile.is_active = False

        profile = await self.repo.update(profile)
        await self.audit.record(
            "deactivate_profile",
            "profile",
            profile.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
        )
        logger.info("profile_deactivated", profile_id=str(profile.id))
        return profile

    async def assign_roles(
        self,
        profile_id: UUID,
        role_ids: list[UUID],
        scope: TenantScope,
    ) -> list[UUID]:
        """Replace the role set of a profile.

        Args:
            profile_id: The profile to change
            role_ids: The complete new role set
            scope: The administrator's tenant scope

        Returns:
            The role ids now linked to the profile

        Raises:
            NotFoundError: If the profile is not in the tenant
            BadRequestError: If any role is unknown, inactive or foreign
        """
        profile = await self.get_profile(profile_id, scope.tenant_id)

        wanted = list(dict.fromkeys(role_ids))
        roles = await self.roles.get_active_by_ids(wanted, scope.tenant_id)
        if len(roles) != len(wanted):
            raise BadRequestError(
                "Some roles do not exist, are inactive or belong to another tenant",
                error_code="invalid_roles",
            )

        await self.repo.replace_roles(profile, wanted)
        await self.audit.record(
            "assign_roles",
            "profile",
            profile.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata={"role_count": len(wanted)},
        )
        logger.info("profile_roles_replaced", profile_id=str(profile.id), role_count=len(wanted))
        return wanted

    async def available_roles(
        self, profile_id: UUID, tenant_id: UUID
    ) -> list[tuple[Role, bool]]:
        """Active roles of the tenant, each flagged if the profile holds it.

        Raises:
            NotFoundError: If the profile is not in the tenant
        """
        profile = await self.get_profile(profile_id, tenant_id)
        assigned = await self.repo.role_ids(profile.id)
        roles = await self.roles.list_active(tenant_id)
        return [(role, role.id in assigned) for role in roles]


ProfileSvc = Annotated[ProfileService, Depends(ProfileService)]
