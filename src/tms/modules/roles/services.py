"""Role service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from tms.api.dependencies import DBSession
from tms.core.audit import AuditService
from tms.core.auth.context import TenantScope
from tms.core.errors import BadRequestError, ConflictError, NotFoundError
from tms.modules.catalogs.models import ActionType
from tms.modules.catalogs.repos import CatalogRepository
from tms.modules.roles.models import Role
from tms.modules.roles.repos import RoleRepository
from tms.modules.roles.schemas import RoleCreate, RoleUpdate


logger = structlog.get_logger()


class RoleService:
    """Service for role administration within a tenant.

    System-wide roles can be read by every tenant but changed by none.
    """

    def __init__(self, db: DBSession) -> None:
        self.repo = RoleRepository(db)
        self.catalogs = CatalogRepository(db)
        self.audit = AuditService(db)

    async def get_role(self, role_id: UUID, tenant_id: UUID, owned: bool = False) -> Role:
        """Get a role of the tenant or a system-wide one.

        Args:
            role_id: The role's UUID
            tenant_id: The caller's tenant
            owned: Only accept roles the tenant owns

        Raises:
            NotFoundError: If no such role is visible to the tenant
        """
        role = await self.repo.get_by_id(role_id, tenant_id, owned=owned)
        if role is None:
            raise NotFoundError("Role not found", resource="role", resource_id=str(role_id))
        return role

    async def list_roles(self, tenant_id: UUID) -> list[Role]:
        """Active roles of the tenant and system-wide ones."""
        return await self.repo.list_active(tenant_id)

    async def create_role(self, data: RoleCreate, scope: TenantScope) -> Role:
        """Create a role owned by the tenant.

        Raises:
            ConflictError: If the tenant already has a role with this code
            BadRequestError: If the action type does not exist
        """
        if await self.repo.get_by_code(data.code, scope.tenant_id) is not None:
            raise ConflictError(
                "Role code already exists",
                error_code="role_code_exists",
                details={"code": data.code},
            )

        action_type = await self.catalogs.get_by_code(ActionType, data.action_type)
        if action_type is None:
            raise BadRequestError("Unknown action type", error_code="unknown_action_type")

        role = await self.repo.create(
            Role(
                code=data.code,
                name=data.name,
                module=data.module,
                action_type_id=action_type.id,
                sort_order=data.sort_order,
                is_visible=data.is_visible,
                is_active=True,
                tenant_id=scope.tenant_id,
            )
        )
        await self.audit.record(
            "create_role",
            "role",
            role.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata={"code": role.code},
        )
        return role

    async def update_role(self, role_id: UUID, data: RoleUpdate, scope: TenantScope) -> Role:
        """Change the display fields or active flag of a tenant role.

        A deactivated role no longer satisfies permission checks, even
        for tokens that still carry its id. Profile links are kept.

        Raises:
            NotFoundError: If the tenant does not own the role
        """
        role = await self.get_role(role_id, scope.tenant_id, owned=True)
        changes = data.model_dump(exclude_none=True)
        for field, value in changes.items():
            setattr(role, field, value)

        role = await self.repo.update(role)
        await self.audit.record(
            "update_role",
            "role",
            role.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata={"code": role.code, "fields": sorted(changes)},
        )
        return role

    async def deactivate_role(self, role_id: UUID, scope: TenantScope) -> Role:
        """Soft-delete a tenant role.

        Raises:
            NotFoundError: If the tenant does not own the role
        """
        role = await self.get_role(role_id, scope.tenant_id, owned=True)
        role.is_active = False

        role = await self.repo.update(role)
        await self.audit.record(
            "deactivate_role",
            "role",
            role.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata={"code": role.code},
        )
        logger.info("role_deactivated", role_id=str(role.id), code=role.code)
        return role


RoleSvc = Annotated[RoleService, Depends(RoleService)]
