"""Profile repository for database operations."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, select

from tms.api.dependencies import DBSession
from tms.modules.profiles.models import Profile, ProfileRole


class ProfileRepository:
    """Repository for Profile and ProfileRole operations, scoped to a tenant."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, profile: Profile) -> Profile:
        """Create a new profile."""
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def get_by_id(self, profile_id: UUID, tenant_id: UUID) -> Profile | None:
        """Get a profile of the tenant by ID."""
        result = await self.session.execute(
            select(Profile).where(Profile.id == profile_id, Profile.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str, tenant_id: UUID) -> Profile | None:
        """Get a profile of the tenant by name."""
        result = await self.session.execute(
            select(Profile).where(Profile.name == name, Profile.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def update(self, profile: Profile) -> Profile:
        """Write pending attribute changes of a profile."""
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def list_by_tenant(self, tenant_id: UUID) -> list[Profile]:
        """List the tenant's profiles ordered by name."""
        result = await self.session.execute(
            select(Profile).where(Profile.tenant_id == tenant_id).order_by(Profile.name)
        )
        return list(result.scalars().all())

    async def role_ids(self, profile_id: UUID) -> set[UUID]:
        """Ids of the roles linked to a profile."""
        result = await self.session.execute(
            select(ProfileRole.role_id).where(ProfileRole.profile_id == profile_id)
        )
        return set(result.scalars().all())

    async def add_roles(self, profile: Profile, role_ids: Iterable[UUID]) -> int:
        """Link roles to a profile, skipping those already linked.

        Returns:
            Number of links created
        """
        existing = await self.role_ids(profile.id)
        created = 0
        for role_id in role_ids:
            if role_id in existing:
                continue
            self.session.add(
                ProfileRole(profile_id=profile.id, role_id=role_id, tenant_id=profile.tenant_id)
            )
            existing.add(role_id)
            created += 1
        await self.session.flush()
        return created

    async def replace_roles(self, profile: Profile, role_ids: Iterable[UUID]) -> None:
        """Replace every role link of a profile.

        Runs in the caller's transaction, so readers never see a
        half-replaced set once it commits.
        """
        await self.session.execute(delete(ProfileRole).where(ProfileRole.profile_id == profile.id))
        for role_id in dict.fromkeys(role_ids):
            self.session.add(
                ProfileRole(profile_id=profile.id, role_id=role_id, tenant_id=profile.tenant_id)
            )
        await self.session.flush()


ProfileRepo = Annotated[ProfileRepository, Depends(ProfileRepository)]
