"""Tenant routes."""

from fastapi import APIRouter

from tms.core.auth.dependencies import CurrentTenantScope
from tms.core.errors import NotFoundError
from tms.modules.tenants.repos import TenantRepo
from tms.modules.tenants.schemas import TenantResponse


router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get(
    "/current",
    response_model=TenantResponse,
    summary="Get current tenant",
    description="The tenant named by the caller's verified token.",
)
async def get_current_tenant(scope: CurrentTenantScope, repo: TenantRepo) -> TenantResponse:
    """Get the caller's tenant."""
    tenant = await repo.get_by_id(scope.tenant_id)
    if tenant is None:
        raise NotFoundError(
            "Tenant not found", resource="tenant", resource_id=str(scope.tenant_id)
        )
    return TenantResponse.model_validate(tenant)
