"""Role administration routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from tms.api.dependencies import DBSession
from tms.core.auth.dependencies import CurrentTenantScope
from tms.core.constants import PERM_MANAGE_ROLES
from tms.core.permissions.dependencies import require_permission
from tms.core.permissions.resolver import PermissionResolver
from tms.modules.roles.schemas import RoleCreate, RoleIdsRequest, RoleResponse, RoleUpdate
from tms.modules.roles.services import RoleSvc


router = APIRouter(
    prefix="/roles",
    tags=["roles"],
    dependencies=[Depends(require_permission(PERM_MANAGE_ROLES))],
)


@router.get(
    "",
    response_model=list[RoleResponse],
    summary="List roles",
    description="Active roles available to the caller's tenant, ordered by module.",
)
async def list_roles(scope: CurrentTenantScope, service: RoleSvc) -> list[RoleResponse]:
    """List the tenant's active roles."""
    roles = await service.list_roles(scope.tenant_id)
    return [RoleResponse.model_validate(role) for role in roles]


@router.post(
    "/by-ids",
    response_model=list[RoleResponse],
    summary="Describe roles",
    description="Resolve role ids into display objects. Not used for authorization.",
)
async def roles_by_ids(
    data: RoleIdsRequest,
    scope: CurrentTenantScope,
    db: DBSession,
) -> list[RoleResponse]:
    """Describe a set of role ids."""
    roles = await PermissionResolver(db).roles_by_ids(
        [str(role_id) for role_id in data.role_ids], scope.tenant_id
    )
    return [RoleResponse.model_validate(role) for role in roles]


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create role",
    description="Create a role owned by the caller's tenant.",
)
async def create_role(
    data: RoleCreate,
    scope: CurrentTenantScope,
    service: RoleSvc,
) -> RoleResponse:
    """Create a tenant role."""
    role = await service.create_role(data, scope)
    return RoleResponse.model_validate(role)


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Get role",
    description="A role of the caller's tenant or a system-wide one, active or not.",
)
async def get_role(role_id: UUID, scope: CurrentTenantScope, service: RoleSvc) -> RoleResponse:
    """Get a role."""
    role = await service.get_role(role_id, scope.tenant_id)
    return RoleResponse.model_validate(role)


@router.put(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Update role",
    description="Change a role owned by the caller's tenant. System-wide roles are read-only.",
)
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    scope: CurrentTenantScope,
    service: RoleSvc,
) -> RoleResponse:
    """Update a tenant role."""
    role = await service.update_role(role_id, data, scope)
    return RoleResponse.model_validate(role)


@router.delete(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Deactivate role",
    description="Soft-delete a role owned by the caller's tenant.",
)
async def deactivate_role(
    role_id: UUID,
    scope: CurrentTenantScope,
    service: RoleSvc,
) -> RoleResponse:
    """Deactivate a tenant role."""
    role = await service.deactivate_role(role_id, scope)
    return RoleResponse.model_validate(role)
