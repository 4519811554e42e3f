"""Permission resolution.

Walks User -> Profile -> ProfileRole -> Role to produce the set of role
ids a user holds within a tenant. Resolution only reads; it is safe to
retry and to run concurrently.
"""

from collections.abc import Iterable
from uuid import UUID

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tms.core.permissions.types import PermissionSet, RoleCode, RoleId, role_id
from tms.modules.profiles.models import Profile, ProfileRole
from tms.modules.roles.models import Role
from tms.modules.users.models import User


logger = structlog.get_logger()


def _parse_ids(ids: Iterable[RoleId | str]) -> list[UUID]:
    parsed: list[UUID] = []
    for value in ids:
        try:
            parsed.append(UUID(str(value)))
        except ValueError:
            continue
    return parsed


class PermissionResolver:
    """Resolves and looks up role grants.

    A broken lookup chain (no user, no profile, inactive profile) yields
    an empty permission set. That means "no access", never a login failure.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def permissions_for(self, user_id: UUID, tenant_id: UUID) -> PermissionSet:
        """Get the role ids granted to a user through their profile.

        Args:
            user_id: The user's UUID
            tenant_id: The tenant the user must belong to

        Returns:
            De-duplicated role ids; empty if the chain is broken
        """
        result = await self.session.execute(
            select(User.profile_id).where(User.id == user_id, User.tenant_id == tenant_id)
        )
        profile_id = result.scalar_one_or_none()
        if profile_id is None:
            logger.info("permissions_unresolved", user_id=str(user_id), reason="no_profile")
            return frozenset()

        return await self.permissions_for_profile(profile_id, tenant_id)

    async def permissions_for_profile(self, profile_id: UUID, tenant_id: UUID) -> PermissionSet:
        """Get the role ids linked to a profile of the tenant.

        Args:
            profile_id: The profile's UUID
            tenant_id: The tenant the profile must belong to

        Returns:
            De-duplicated role ids; empty if the profile is missing or inactive
        """
        result = await self.session.execute(
            select(Profile.is_active).where(
                Profile.id == profile_id, Profile.tenant_id == tenant_id
            )
        )
        is_active = result.scalar_one_or_none()
        if not is_active:
            logger.info(
                "permissions_unresolved",
                profile_id=str(profile_id),
                reason="profile_missing" if is_active is None else "profile_inactive",
            )
            return frozenset()

        result = await self.session.execute(
            select(ProfileRole.role_id).where(ProfileRole.profile_id == profile_id).distinct()
        )
        return frozenset(role_id(value) for value in result.scalars().all())

    async def roles_by_ids(self, ids: Iterable[RoleId | str], tenant_id: UUID) -> list[Role]:
        """Resolve role ids into display rows.

        For UI purposes only: authorization checks use the ids themselves.
        Unknown, foreign-tenant and inactive roles are left out.

        Args:
            ids: Role ids, typically from a session token
            tenant_id: The caller's tenant

        Returns:
            Active roles ordered by module and sort order
        """
        parsed = _parse_ids(ids)
        if not parsed:
            return []

        result = await self.session.execute(
            select(Role)
            .where(
                Role.id.in_(parsed),
                Role.is_active.is_(True),
                or_(Role.tenant_id == tenant_id, Role.tenant_id.is_(None)),
            )
            .order_by(Role.module, Role.sort_order, Role.code)
        )
        return list(result.scalars().all())

    async def role_ids_for_code(self, code: RoleCode, tenant_id: UUID) -> PermissionSet:
        """Get the ids of the active roles carrying a permission code.

        Looks at the tenant's own roles and system-wide ones.

        Args:
            code: Readable permission key
            tenant_id: The caller's tenant

        Returns:
            Matching role ids; empty if no active role has the code
        """
        result = await self.session.execute(
            select(Role.id).where(
                Role.code == code,
                Role.is_active.is_(True),
                or_(Role.tenant_id == tenant_id, Role.tenant_id.is_(None)),
            )
        )
        return frozenset(role_id(value) for value in result.scalars().all())
