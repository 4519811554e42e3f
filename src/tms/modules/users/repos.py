"""Data access for user accounts."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import Select, func, select

from tms.api.dependencies import DBSession
from tms.modules.tenants.models import Tenant
from tms.modules.users.models import User


# Same-email accounts checked per password login, one bcrypt check each
MAX_LOGIN_CANDIDATES = 5


def normalize_email(email: str) -> str:
    """Emails are stored and compared lowercase."""
    return email.strip().lower()


def _by_email(email: str) -> Select[tuple[User]]:
    return (
        select(User)
        .where(User.email == normalize_email(email))
        .order_by(User.created_at, User.id)
    )


class UserRepository:
    """Queries on ``users``.

    Everything is tenant-scoped except the email lookups used by login
    and token refresh, which run before a tenant is known.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID, tenant_id: UUID | None = None) -> User | None:
        """Fetch a user, restricted to ``tenant_id`` when given.

        Only token refresh passes no tenant: the subject is re-read and
        its current tenant wins over the one in the old token.
        """
        stmt = select(User).where(User.id == user_id)
        if tenant_id is not None:
            stmt = stmt.where(User.tenant_id == tenant_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_by_email(self, email: str, tenant_id: UUID) -> User | None:
        stmt = select(User).where(
            User.email == normalize_email(email), User.tenant_id == tenant_id
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def list_password_candidates(self, email: str) -> list[User]:
        """Accounts a password login with this email may act as, oldest first.

        Only active accounts with a password, in active tenants, count.
        At most ``MAX_LOGIN_CANDIDATES`` are returned; a login whose
        matching account ranks past that cap is refused.
        """
        stmt = (
            _by_email(email)
            .join(Tenant, Tenant.id == User.tenant_id)
            .where(
                User.is_active.is_(True),
                User.password_hash.is_not(None),
                Tenant.is_active.is_(True),
            )
            .limit(MAX_LOGIN_CANDIDATES)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def get_first_by_email(self, email: str) -> User | None:
        """Oldest account with this email in any tenant, active or not."""
        return (await self.session.execute(_by_email(email).limit(1))).scalar_one_or_none()

    async def list_by_tenant(
        self,
        tenant_id: UUID,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        """One page of the tenant's users, newest first, and the total."""
        total = (
            await self.session.execute(
                select(func.count()).select_from(User).where(User.tenant_id == tenant_id)
            )
        ).scalar_one()

        result = await self.session.execute(
            select(User)
            .where(User.tenant_id == tenant_id)
            .order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    async def update(self, user: User) -> User:
        """Write pending attribute changes and reload server defaults."""
        await self.session.flush()
        await self.session.refresh(user)
        return user


UserRepo = Annotated[UserRepository, Depends(UserRepository)]
