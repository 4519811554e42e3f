"""Integration tests for permission resolution."""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from tms.core.permissions.resolver import PermissionResolver
from tms.core.permissions.types import RoleCode, role_id
from tms.modules.profiles.models import Profile
from tms.modules.roles.models import Role
from tms.modules.tenants.models import Tenant
from tms.modules.users.models import User
from tests.factories.identity import create_profile, create_role, create_tenant, create_user


pytestmark = pytest.mark.integration


class TestPermissionsFor:
    """Tests for User -> Profile -> Role resolution."""

    async def test_returns_profile_role_ids(
        self, db: AsyncSession, user: User, tenant: Tenant, starter_roles: dict[str, Role]
    ):
        permissions = await PermissionResolver(db).permissions_for(user.id, tenant.id)

        assert permissions == {role_id(role.id) for role in starter_roles.values()}

    async def test_includes_inactive_roles(
        self, db: AsyncSession, user: User, tenant: Tenant, starter_roles: dict[str, Role]
    ):
        """Activity is checked when a permission is required, not at mint time."""
        starter_roles["ver_dashboard"].is_active = False
        await db.flush()

        permissions = await PermissionResolver(db).permissions_for(user.id, tenant.id)

        assert role_id(starter_roles["ver_dashboard"].id) in permissions

    async def test_wrong_tenant(self, db: AsyncSession, user: User):
        other = await create_tenant(db, name="Otra")

        assert await PermissionResolver(db).permissions_for(user.id, other.id) == frozenset()

    async def test_unknown_user(self, db: AsyncSession, tenant: Tenant):
        assert await PermissionResolver(db).permissions_for(uuid4(), tenant.id) == frozenset()

    async def test_user_without_profile(self, db: AsyncSession, tenant: Tenant):
        bare = await create_user(db, tenant, None, email="bare@example.com")

        assert await PermissionResolver(db).permissions_for(bare.id, tenant.id) == frozenset()

    async def test_inactive_profile(
        self, db: AsyncSession, user: User, tenant: Tenant, admin_profile: Profile
    ):
        admin_profile.is_active = False
        await db.flush()

        assert await PermissionResolver(db).permissions_for(user.id, tenant.id) == frozenset()

    async def test_profile_without_roles(self, db: AsyncSession, tenant: Tenant):
        empty = await create_profile(db, tenant, name="Vacío")

        assert (
            await PermissionResolver(db).permissions_for_profile(empty.id, tenant.id)
            == frozenset()
        )


class TestRoleLookups:
    """Tests for role id and code lookups."""

    async def test_roles_by_ids(
        self, db: AsyncSession, tenant: Tenant, starter_roles: dict[str, Role]
    ):
        wanted = [
            role_id(starter_roles["ver_dashboard"].id),
            role_id(starter_roles["gestionar_roles"].id),
        ]

        roles = await PermissionResolver(db).roles_by_ids(wanted, tenant.id)

        assert {role.code for role in roles} == {"ver_dashboard", "gestionar_roles"}

    async def test_roles_by_ids_skips_foreign_inactive_and_garbage(
        self, db: AsyncSession, tenant: Tenant, starter_roles: dict[str, Role]
    ):
        other = await create_tenant(db, name="Otra")
        foreign = await create_role(db, "foreign_role", tenant_id=other.id)
        starter_roles["ver_dashboard"].is_active = False
        await db.flush()

        roles = await PermissionResolver(db).roles_by_ids(
            [
                role_id(foreign.id),
                role_id(starter_roles["ver_dashboard"].id),
                role_id(starter_roles["crear_ordenes"].id),
                "not-a-uuid",
            ],
            tenant.id,
        )

        assert [role.code for role in roles] == ["crear_ordenes"]

    async def test_roles_by_ids_empty(self, db: AsyncSession, tenant: Tenant):
        assert await PermissionResolver(db).roles_by_ids([], tenant.id) == []

    async def test_role_ids_for_code(
        self, db: AsyncSession, tenant: Tenant, starter_roles: dict[str, Role]
    ):
        shared = await create_role(db, "ver_dashboard", tenant_id=None)
        other = await create_tenant(db, name="Otra")
        await create_role(db, "ver_dashboard", tenant_id=other.id)

        ids = await PermissionResolver(db).role_ids_for_code(RoleCode("ver_dashboard"), tenant.id)

        assert ids == {role_id(starter_roles["ver_dashboard"].id), role_id(shared.id)}

    async def test_role_ids_for_code_skips_inactive(
        self, db: AsyncSession, tenant: Tenant, starter_roles: dict[str, Role]
    ):
        starter_roles["ver_dashboard"].is_active = False
        await db.flush()

        ids = await PermissionResolver(db).role_ids_for_code(RoleCode("ver_dashboard"), tenant.id)

        assert ids == frozenset()

    async def test_role_ref(self, starter_roles: dict[str, Role]):
        role = starter_roles["gestionar_usuarios"]

        ref = role.ref()

        assert ref.id == str(role.id)
        assert ref.code == "gestionar_usuarios"
