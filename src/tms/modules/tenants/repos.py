"""Tenant repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from tms.api.dependencies import DBSession
from tms.modules.tenants.models import Tenant


class TenantRepository:
    """Repository for Tenant database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, tenant: Tenant) -> Tenant:
        """Create a new tenant."""
        self.session.add(tenant)
        await self.session.flush()
        await self.session.refresh(tenant)
        return tenant

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by ID."""
        result = await self.session.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def get_active_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by ID if it is active."""
        result = await self.session.execute(
            select(Tenant).where(Tenant.id == tenant_id, Tenant.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Tenant | None:
        """Get the oldest tenant with the given legal name."""
        result = await self.session.execute(
            select(Tenant).where(Tenant.name == name).order_by(Tenant.created_at).limit(1)
        )
        return result.scalar_one_or_none()


TenantRepo = Annotated[TenantRepository, Depends(TenantRepository)]
