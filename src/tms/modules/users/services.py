"""User service for business logic."""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends
from fastapi.concurrency import run_in_threadpool

from tms.api.dependencies import DBSession
from tms.core.audit import AuditService
from tms.core.auth.backend import hash_password, validate_password_strength
from tms.core.auth.context import TenantScope
from tms.core.constants import USER_STATUS_ACTIVE, USER_STATUS_INACTIVE, USER_TYPE_DEFAULT
from tms.core.errors import BadRequestError, ConflictError, NotFoundError
from tms.modules.catalogs.models import UserStatus, UserType
from tms.modules.catalogs.repos import CatalogRepository
from tms.modules.profiles.models import Profile
from tms.modules.profiles.repos import ProfileRepository
from tms.modules.users.models import User
from tms.modules.users.repos import UserRepository, normalize_email
from tms.modules.users.schemas import UserCreate, UserSelfUpdate, UserUpdate


logger = structlog.get_logger()


class UserService:
    """Service for user management operations within a tenant."""

    def __init__(self, db: DBSession) -> None:
        self.repo = UserRepository(db)
        self.profiles = ProfileRepository(db)
        self.catalogs = CatalogRepository(db)
        self.audit = AuditService(db)

    async def _assignable_profile(self, profile_id: UUID, tenant_id: UUID) -> Profile:
        profile = await self.profiles.get_by_id(profile_id, tenant_id)
        if profile is None or not profile.is_active:
            raise BadRequestError(
                "Profile does not belong to this tenant or is inactive",
                error_code="invalid_profile",
            )
        return profile

    async def _set_active(self, user: User, is_active: bool) -> None:
        code, name = (
            (USER_STATUS_ACTIVE, "Activo") if is_active else (USER_STATUS_INACTIVE, "Inactivo")
        )
        status, _ = await self.catalogs.get_or_create(UserStatus, code, name)
        user.is_active = is_active
        user.status_id = status.id

    async def create_user(self, data: UserCreate, scope: TenantScope) -> User:
        """Create a user with an initial password.

        Args:
            data: User creation data
            scope: The administrator's tenant scope

        Returns:
            The created user

        Raises:
            ValidationError: If the password is too short
            BadRequestError: If the profile is not an active profile of the tenant
            ConflictError: If the email already exists in the tenant
        """
        validate_password_strength(data.password)

        profile = await self._assignable_profile(data.profile_id, scope.tenant_id)

        if await self.repo.get_by_email(data.email, scope.tenant_id) is not None:
            raise ConflictError(
                "Email already registered",
                error_code="email_exists",
                details={"email": data.email},
            )

        status, _ = await self.catalogs.get_or_create(UserStatus, USER_STATUS_ACTIVE, "Activo")
        user_type, _ = await self.catalogs.get_or_create(UserType, USER_TYPE_DEFAULT, "Estándar")

        user = await self.repo.create(
            User(
                email=normalize_email(data.email),
                full_name=data.full_name,
                password_hash=await run_in_threadpool(hash_password, data.password),
                is_active=True,
                status_id=status.id,
                user_type_id=user_type.id,
                tenant_id=scope.tenant_id,
                profile_id=profile.id,
            )
        )
        await self.audit.record(
            "create_user", "user", user.id, tenant_id=scope.tenant_id, user_id=scope.user_id
        )
        return user

    async def get_user(self, user_id: UUID, tenant_id: UUID) -> User:
        """Get a user of the tenant.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.repo.get_by_id(user_id, tenant_id)
        if not user:
            raise NotFoundError(
                "User not found",
                resource="user",
                resource_id=str(user_id),
            )
        return user

    async def list_users(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        """List users for a tenant."""
        return await self.repo.list_by_tenant(tenant_id, page, page_size)

    async def update_user(self, user_id: UUID, data: UserUpdate, scope: TenantScope) -> User:
        """Change a user's name, profile or active flag.

        Omitted fields are left alone. A new profile applies from the
        user's next login or refresh.

        Raises:
            NotFoundError: If user not found
            BadRequestError: If the new profile is not an active profile of the tenant
        """
        user = await self.get_user(user_id, scope.tenant_id)
        changes = data.model_dump(exclude_none=True)
        metadata: dict[str, Any] = {"fields": sorted(changes)}

        profile_id = changes.pop("profile_id", None)
        if profile_id is not None and profile_id != user.profile_id:
            profile = await self._assignable_profile(profile_id, scope.tenant_id)
            user.profile_id = profile.id
            metadata["profile_id"] = str(profile.id)

        is_active = changes.pop("is_active", None)
        if is_active is not None:
            await self._set_active(user, is_active)
        for field, value in changes.items():
            setattr(user, field, value)

        user = await self.repo.update(user)
        await self.audit.record(
            "update_user",
            "user",
            user.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata=metadata,
        )
        logger.info("user_updated", user_id=str(user.id), fields=metadata["fields"])
        return user

    async def update_self(self, data: UserSelfUpdate, scope: TenantScope) -> User:
        """Change the caller's own display name.

        Raises:
            NotFoundError: If the caller no longer exists in the tenant
        """
        user = await self.get_user(scope.user_id, scope.tenant_id)
        user.full_name = data.full_name
        user = await self.repo.update(user)
        await self.audit.record(
            "update_user",
            "user",
            user.id,
            tenant_id=scope.tenant_id,
            user_id=scope.user_id,
            metadata={"fields": ["full_name"]},
        )
        return user

    async def set_password(self, user_id: UUID, password: str, scope: TenantScope) -> User:
        """Set a user's password.

        Raises:
            ValidationError: If the password is too short
            NotFoundError: If user not found
        """
        validate_password_strength(password)
        user = await self.get_user(user_id, scope.tenant_id)

        user.password_hash = await run_in_threadpool(hash_password, password)
        user = await self.repo.update(user)
        await self.audit.record(
            "set_password", "user", user.id, tenant_id=scope.tenant_id, user_id=scope.user_id
        )
        return user

    async def deactivate_user(self, user_id: UUID, scope: TenantScope) -> User:
        """Soft-delete a user. Issued tokens stay valid until they expire.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.get_user(user_id, scope.tenant_id)
        await self._set_active(user, False)

        user = await self.repo.update(user)
        await self.audit.record(
            "deactivate_user", "user", user.id, tenant_id=scope.tenant_id, user_id=scope.user_id
        )
        return user


UserSvc = Annotated[UserService, Depends(UserService)]
