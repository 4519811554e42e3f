"""Authentication service for login, refresh and password changes."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from fastapi.concurrency import run_in_threadpool

from tms.api.dependencies import DBSession
from tms.core.audit import AuditService
from tms.core.auth.backend import (
    access_token_lifetime,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from tms.core.auth.resolver import IdentityResolver, ResolvedIdentity
from tms.core.auth.schemas import ExternalAssertion, LoginResponse, SessionClaims, SessionUser
from tms.core.errors import InvalidCredentialsError, UnauthenticatedError
from tms.core.permissions.resolver import PermissionResolver
from tms.modules.users.repos import UserRepository


logger = structlog.get_logger()


class AuthService:
    """Service for authentication operations.

    Every session is minted from records read in this request: a refresh
    re-resolves tenant, profile and permissions instead of trusting the
    previous token.
    """

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.resolver = IdentityResolver(db)
        self.permissions = PermissionResolver(db)
        self.user_repo = UserRepository(db)
        self.audit = AuditService(db)

    async def login(self, email: str, password: str) -> LoginResponse:
        """Authenticate with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid or the
                account is inactive
        """
        identity = await self.resolver.resolve_password(email, password)
        return await self._issue(identity, method="password")

    async def login_external(self, assertion: ExternalAssertion) -> LoginResponse:
        """Authenticate with a verified identity provider assertion.

        Raises:
            UnauthenticatedError: If the identity cannot be mapped to an
                active user
        """
        identity = await self.resolver.resolve_external(assertion)
        return await self._issue(identity, method="external")

    async def refresh(self, refresh_token: str) -> LoginResponse:
        """Mint a new pair from a refresh token.

        Raises:
            InvalidTokenError: If the refresh token fails verification
            UnauthenticatedError: If the user is gone or inactive
        """
        token_data = decode_refresh_token(refresh_token)

        user = await self.user_repo.get_by_id(token_data.subject)
        if user is None or not user.is_active:
            logger.info("refresh_refused", user_id=str(token_data.subject), reason="user_invalid")
            raise UnauthenticatedError()

        identity = await self.resolver.reload(user)
        if identity is None:
            raise UnauthenticatedError()

        return await self._issue(identity, method="refresh")

    async def change_password(
        self,
        user_id: UUID,
        tenant_id: UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        """Change the caller's own password.

        Raises:
            ValidationError: If the new password is too short or too long
            InvalidCredentialsError: If the current password does not match
            UnauthenticatedError: If the user no longer exists
        """
        validate_password_strength(new_password)

        user = await self.user_repo.get_by_id(user_id, tenant_id)
        if user is None or not user.is_active:
            raise UnauthenticatedError()

        if not await run_in_threadpool(verify_password, current_password, user.password_hash):
            logger.info("password_change_failed", user_id=str(user_id), reason="bad_password")
            raise InvalidCredentialsError("Current password is incorrect")

        user.password_hash = await run_in_threadpool(hash_password, new_password)
        await self.user_repo.update(user)
        await self.audit.record(
            "password_change", "user", user.id, tenant_id=tenant_id, user_id=user.id
        )

    async def _issue(self, identity: ResolvedIdentity, method: str) -> LoginResponse:
        user, tenant, profile = identity.user, identity.tenant, identity.profile

        permissions = await self.permissions.permissions_for(user.id, tenant.id)
        profile_type = profile.profile_type.code if profile and profile.profile_type else None
        claims = SessionClaims(
            subject=user.id,
            email=user.email,
            tenant_id=tenant.id,
            profile_id=profile.id if profile else None,
            permissions=permissions,
        )
        access_token = create_access_token(claims)
        refresh_token = create_refresh_token(user.id)

        logger.info(
            "login_succeeded",
            method=method,
            user_id=str(user.id),
            tenant_id=str(tenant.id),
            permission_count=len(permissions),
        )

        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(access_token_lifetime().total_seconds()),
            user=SessionUser(
                id=user.id,
                email=user.email,
                name=user.full_name,
                tenant_id=tenant.id,
                profile_id=profile.id if profile else None,
                profile_type=profile_type,
                permissions=sorted(permissions),
            ),
        )


# Type alias for dependency injection
AuthSvc = Annotated[AuthService, Depends(AuthService)]
