"""Just-in-time provisioning of tenants, profiles and users.

Used by the external login when an unknown but verified identity shows
up and ``JIT_PROVISIONING_ENABLED`` is on, and by the seed script.
Every entity created here leaves an ``audit_logs`` row.
"""

from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tms.config import settings
from tms.core.audit import AuditService
from tms.core.auth.schemas import ExternalAssertion
from tms.core.constants import (
    PROFILE_TYPE_ADMIN,
    STARTER_ROLES,
    TENANT_TYPE_ADMIN,
    USER_STATUS_ACTIVE,
    USER_TYPE_DEFAULT,
)
from tms.core.errors import UnauthenticatedError
from tms.modules.catalogs.models import ActionType, ProfileType, TenantType, UserStatus, UserType
from tms.modules.catalogs.repos import CatalogRepository
from tms.modules.profiles.models import Profile
from tms.modules.profiles.repos import ProfileRepository
from tms.modules.roles.models import Role
from tms.modules.roles.repos import RoleRepository
from tms.modules.tenants.models import Tenant
from tms.modules.tenants.repos import TenantRepository
from tms.modules.users.models import User
from tms.modules.users.repos import UserRepository, normalize_email


logger = structlog.get_logger()

PROVISION_ACTION = "jit_provision"


class TenantProvisioner:
    """Get-or-create of the records an external login needs."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.catalogs = CatalogRepository(session)
        self.tenants = TenantRepository(session)
        self.profiles = ProfileRepository(session)
        self.roles = RoleRepository(session)
        self.users = UserRepository(session)
        self.audit = AuditService(session)

    async def provision(self, assertion: ExternalAssertion) -> User:
        """Create the user of a verified external identity.

        Args:
            assertion: Verified identity provider claims

        Returns:
            The new user (or the concurrently created one)

        Raises:
            UnauthenticatedError: If the provider did not verify the email,
                or the default tenant is deactivated
        """
        if not assertion.email_verified:
            logger.info("jit_provision_refused", reason="email_not_verified")
            raise UnauthenticatedError()

        status, _ = await self.catalogs.get_or_create(UserStatus, USER_STATUS_ACTIVE, "Activo")
        user_type, _ = await self.catalogs.get_or_create(UserType, USER_TYPE_DEFAULT, "Estándar")
        tenant = await self.resolve_tenant(assertion.tenant_hint)
        profile = await self.ensure_default_profile(tenant)

        user = User(
            email=normalize_email(assertion.email),
            full_name=assertion.name,
            is_active=True,
            password_hash=None,
            external_subject=assertion.subject,
            status_id=status.id,
            user_type_id=user_type.id,
            tenant_id=tenant.id,
            profile_id=profile.id,
        )
        try:
            async with self.session.begin_nested():
                user = await self.users.create(user)
        except IntegrityError:
            # Another request provisioned the same email first
            existing = await self.users.get_by_email(assertion.email, tenant.id)
            if existing is None:
                raise
            return existing

        await self.audit.record(
            PROVISION_ACTION,
            "user",
            user.id,
            tenant_id=tenant.id,
            user_id=user.id,
            metadata={"external_subject": assertion.subject, "profile_id": str(profile.id)},
        )
        logger.info("jit_provisioned", user_id=str(user.id), tenant_id=str(tenant.id))
        return user

    async def resolve_tenant(self, tenant_hint: str | None) -> Tenant:
        """Pick the tenant named by the hint, or the default tenant.

        A hint naming an unknown or inactive tenant falls back to the
        default tenant.
        """
        if tenant_hint:
            try:
                hinted = await self.tenants.get_active_by_id(UUID(tenant_hint))
            except ValueError:
                hinted = None
            if hinted is not None:
                return hinted
            logger.info("tenant_hint_ignored")

        return await self.ensure_default_tenant()

    async def ensure_default_tenant(self) -> Tenant:
        """Get or create the default tenant.

        Raises:
            UnauthenticatedError: If the default tenant exists but is inactive
        """
        tenant = await self.tenants.get_by_name(settings.default_tenant_name)
        if tenant is not None:
            if not tenant.is_active:
                logger.warning("jit_provision_refused", reason="default_tenant_inactive")
                raise UnauthenticatedError()
            return tenant

        tenant_type, _ = await self.catalogs.get_or_create(
            TenantType, TENANT_TYPE_ADMIN, "Administrativo"
        )
        tenant = await self.tenants.create(
            Tenant(
                name=settings.default_tenant_name,
                tenant_type_id=tenant_type.id,
                is_active=True,
            )
        )
        await self.audit.record(PROVISION_ACTION, "tenant", tenant.id, tenant_id=tenant.id)
        return tenant

    async def ensure_default_profile(self, tenant: Tenant) -> Profile:
        """Get or create the tenant's default profile.

        The starter roles are linked only when the profile is created here.
        An existing profile keeps whatever roles an administrator left it.
        """
        profile = await self.profiles.get_by_name(settings.default_profile_name, tenant.id)
        if profile is not None:
            return profile

        profile_type, _ = await self.catalogs.get_or_create(
            ProfileType, PROFILE_TYPE_ADMIN, "Administrador"
        )
        profile = await self.profiles.create(
            Profile(
                name=settings.default_profile_name,
                description="Perfil con acceso administrativo",
                is_active=True,
                profile_type_id=profile_type.id,
                tenant_id=tenant.id,
            )
        )
        await self.audit.record(PROVISION_ACTION, "profile", profile.id, tenant_id=tenant.id)

        role_ids = []
        for order, (code, name, module, action) in enumerate(STARTER_ROLES):
            role = await self.ensure_role(tenant.id, code, name, module, action, order)
            role_ids.append(role.id)

        added = await self.profiles.add_roles(profile, role_ids)
        if added:
            await self.audit.record(
                PROVISION_ACTION,
                "profile_roles",
                profile.id,
                tenant_id=tenant.id,
                metadata={"added": added},
            )
        return profile

    async def ensure_role(
        self,
        tenant_id: UUID,
        code: str,
        name: str,
        module: str,
        action: str,
        sort_order: int = 0,
    ) -> Role:
        """Get a role by code (tenant or system-wide) or create it in the tenant."""
        role = await self.roles.get_by_code(code, tenant_id) or await self.roles.get_by_code(
            code, None
        )
        if role is not None:
            return role

        action_type, _ = await self.catalogs.get_or_create(ActionType, action)
        role = await self.roles.create(
            Role(
                code=code,
                name=name,
                module=module,
                action_type_id=action_type.id,
                is_active=True,
                is_visible=True,
                sort_order=sort_order,
                tenant_id=tenant_id,
            )
        )
        await self.audit.record(PROVISION_ACTION, "role", role.id, tenant_id=tenant_id)
        return role
