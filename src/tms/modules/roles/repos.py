"""Role repository for database operations."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import ColumnElement, or_, select

from tms.api.dependencies import DBSession
from tms.modules.roles.models import Role


def _visible_to(tenant_id: UUID) -> ColumnElement[bool]:
    return or_(Role.tenant_id == tenant_id, Role.tenant_id.is_(None))


class RoleRepository:
    """Repository for Role operations.

    A tenant sees its own roles plus the system-wide ones.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, role: Role) -> Role:
        """Create a new role."""
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_code(self, code: str, tenant_id: UUID | None) -> Role | None:
        """Get the role with this code owned by exactly this tenant (or system-wide)."""
        stmt = select(Role).where(Role.code == code)
        if tenant_id is None:
            stmt = stmt.where(Role.tenant_id.is_(None))
        else:
            stmt = stmt.where(Role.tenant_id == tenant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, role_id: UUID, tenant_id: UUID, owned: bool = False) -> Role | None:
        """Get a role visible to the tenant, or only one it owns when ``owned``."""
        scope = Role.tenant_id == tenant_id if owned else _visible_to(tenant_id)
        result = await self.session.execute(select(Role).where(Role.id == role_id, scope))
        return result.scalar_one_or_none()

    async def update(self, role: Role) -> Role:
        """Write pending attribute changes of a role."""
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def list_active(self, tenant_id: UUID) -> list[Role]:
        """Active roles visible to the tenant, ordered for display."""
        result = await self.session.execute(
            select(Role)
            .where(Role.is_active.is_(True), _visible_to(tenant_id))
            .order_by(Role.module, Role.sort_order, Role.code)
        )
        return list(result.scalars().all())

    async def get_active_by_ids(self, role_ids: Iterable[UUID], tenant_id: UUID) -> list[Role]:
        """Active roles visible to the tenant among the given ids."""
        ids = list(set(role_ids))
        if not ids:
            return []
        result = await self.session.execute(
            select(Role).where(Role.id.in_(ids), Role.is_active.is_(True), _visible_to(tenant_id))
        )
        return list(result.scalars().all())


RoleRepo = Annotated[RoleRepository, Depends(RoleRepository)]
