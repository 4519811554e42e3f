"""Resolution of a login into the user, tenant and profile it acts as."""

from dataclasses import dataclass

import structlog
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from tms.config import settings
from tms.core.auth.backend import burn_password_check, verify_password
from tms.core.auth.schemas import ExternalAssertion
from tms.core.errors import InvalidCredentialsError, UnauthenticatedError
from tms.modules.profiles.models import Profile
from tms.modules.profiles.repos import ProfileRepository
from tms.modules.tenants.models import Tenant
from tms.modules.tenants.provisioning import TenantProvisioner
from tms.modules.tenants.repos import TenantRepository
from tms.modules.users.models import User
from tms.modules.users.repos import UserRepository


logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class ResolvedIdentity:
    """The records a session is minted for."""

    user: User
    tenant: Tenant
    profile: Profile | None


class IdentityResolver:
    """Finds (or provisions) the user behind a login.

    The password path never reveals whether an email exists: unknown
    email, wrong password and inactive account all raise the same error.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.tenants = TenantRepository(session)
        self.profiles = ProfileRepository(session)

    async def resolve_password(self, email: str, password: str) -> ResolvedIdentity:
        """Check an email/password pair.

        Raises:
            InvalidCredentialsError: For any failure
        """
        candidates = await self.users.list_password_candidates(email)
        if not candidates:
            await run_in_threadpool(burn_password_check, password)
            logger.info("login_failed", method="password", reason="unknown_or_inactive")
            raise InvalidCredentialsError()

        for user in candidates:
            if await run_in_threadpool(verify_password, password, user.password_hash):
                identity = await self._load(user)
                if identity is None:
                    break
                return identity
        else:
            logger.info("login_failed", method="password", reason="bad_password")

        raise InvalidCredentialsError()

    async def resolve_external(self, assertion: ExternalAssertion) -> ResolvedIdentity:
        """Map a verified provider assertion to a user.

        Unknown emails are provisioned only when JIT provisioning is on.

        Raises:
            UnauthenticatedError: If the user is inactive, or unknown while
                provisioning is off
        """
        user = await self.users.get_first_by_email(assertion.email)

        if user is None:
            if not settings.jit_provisioning_enabled:
                logger.info("login_failed", method="external", reason="unknown_identity")
                raise UnauthenticatedError()
            user = await TenantProvisioner(self.session).provision(assertion)
        elif not user.is_active:
            logger.info("login_failed", method="external", reason="inactive")
            raise UnauthenticatedError()

        identity = await self._load(user)
        if identity is None:
            raise UnauthenticatedError()
        return identity

    async def reload(self, user: User) -> ResolvedIdentity | None:
        """Re-read tenant and profile of a user from storage."""
        return await self._load(user)

    async def _load(self, user: User) -> ResolvedIdentity | None:
        tenant = await self.tenants.get_by_id(user.tenant_id)
        if tenant is None or not tenant.is_active:
            logger.info("login_failed", user_id=str(user.id), reason="tenant_inactive")
            return None

        profile = None
        if user.profile_id is not None:
            profile = await self.profiles.get_by_id(user.profile_id, user.tenant_id)

        return ResolvedIdentity(user=user, tenant=tenant, profile=profile)
