"""Integration tests for user, profile and role administration."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tms.core.audit.models import AuditLog
from tms.core.constants import PERM_MANAGE_ROLES, PERM_MANAGE_USERS, PERM_VIEW_DASHBOARD
from tms.modules.catalogs.models import ActionType
from tms.modules.profiles.models import Profile
from tms.modules.roles.models import Role
from tms.modules.tenants.models import Tenant
from tms.modules.users.models import User
from tests.factories.assertion import UserCreateFactory
from tests.factories.identity import TEST_PASSWORD, create_profile, create_role, create_user


pytestmark = pytest.mark.integration


class TestUsers:
    """Tests for /api/v1/users."""

    async def test_create_user(
        self, authenticated_client: AsyncClient, client: AsyncClient, admin_profile: Profile
    ):
        payload = UserCreateFactory.build(profile_id=admin_profile.id)

        response = await authenticated_client.post(
            "/api/v1/users", json=payload.model_dump(mode="json")
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == payload.email
        assert data["profile_id"] == str(admin_profile.id)
        assert "password_hash" not in data

        login = await client.post(
            "/api/v1/auth/login", json={"email": payload.email, "password": payload.password}
        )
        assert login.status_code == 200

    async def test_duplicate_email(
        self, authenticated_client: AsyncClient, user: User, admin_profile: Profile
    ):
        payload = UserCreateFactory.build(email=user.email, profile_id=admin_profile.id)

        response = await authenticated_client.post(
            "/api/v1/users", json=payload.model_dump(mode="json")
        )

        assert response.status_code == 409

    async def test_weak_password(self, authenticated_client: AsyncClient, admin_profile: Profile):
        payload = UserCreateFactory.build(password="short", profile_id=admin_profile.id)

        response = await authenticated_client.post(
            "/api/v1/users", json=payload.model_dump(mode="json")
        )

        assert response.status_code == 422

    async def test_deactivate_user_blocks_login(
        self,
        authenticated_client: AsyncClient,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        admin_profile: Profile,
    ):
        payload = UserCreateFactory.build(profile_id=admin_profile.id)
        created = (
            await authenticated_client.post("/api/v1/users", json=payload.model_dump(mode="json"))
        ).json()

        response = await authenticated_client.delete(f"/api/v1/users/{created['id']}")

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        login = await client.post(
            "/api/v1/auth/login", json={"email": payload.email, "password": payload.password}
        )
        assert login.status_code == 401

        actions = (
            await db.execute(
                select(AuditLog.action).where(AuditLog.resource_id == created["id"])
            )
        ).scalars().all()
        assert set(actions) == {"create_user", "deactivate_user"}

    async def test_set_password(
        self, authenticated_client: AsyncClient, client: AsyncClient, user: User
    ):
        response = await authenticated_client.put(
            f"/api/v1/users/{user.id}/password", json={"password": "reset-by-admin"}
        )

        assert response.status_code == 204
        login = await client.post(
            "/api/v1/auth/login", json={"email": user.email, "password": "reset-by-admin"}
        )
        assert login.status_code == 200

    async def test_requires_manage_users(
        self,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        starter_roles: dict[str, Role],
    ):
        """A caller whose profile lacks gestionar_usuarios is refused."""
        limited = await create_profile(
            db, tenant, roles=[starter_roles[PERM_VIEW_DASHBOARD]], name="Operador"
        )
        await create_user(db, tenant, limited, email="operador@example.com")
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "operador@example.com", "password": TEST_PASSWORD},
        )
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        response = await client.get("/api/v1/users", headers=headers)

        assert response.status_code == 403
        assert PERM_MANAGE_USERS not in response.text

    async def test_get_user(self, authenticated_client: AsyncClient, user: User):
        response = await authenticated_client.get(f"/api/v1/users/{user.id}")

        assert response.status_code == 200
        assert response.json()["email"] == user.email

    async def test_get_unknown_user(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get(f"/api/v1/users/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["type"].endswith("/not_found")

    async def test_reassign_profile(
        self,
        authenticated_client: AsyncClient,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        starter_roles: dict[str, Role],
    ):
        """A new profile replaces the user's permissions from the next login."""
        dashboard = starter_roles[PERM_VIEW_DASHBOARD]
        limited = await create_profile(db, tenant, roles=[dashboard], name="Operador")
        operator = await create_user(db, tenant, None, email="operador@example.com")

        response = await authenticated_client.put(
            f"/api/v1/users/{operator.id}", json={"profile_id": str(limited.id)}
        )

        assert response.status_code == 200
        assert response.json()["profile_id"] == str(limited.id)
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "operador@example.com", "password": TEST_PASSWORD},
        )
        assert login.json()["user"]["permissions"] == [str(dashboard.id)]

        entry = (
            await db.execute(select(AuditLog).where(AuditLog.action == "update_user"))
        ).scalar_one()
        assert entry.resource_id == str(operator.id)
        assert entry.metadata_ == {"fields": ["profile_id"], "profile_id": str(limited.id)}

    async def test_update_name_keeps_other_fields(
        self, authenticated_client: AsyncClient, user: User, admin_profile: Profile
    ):
        response = await authenticated_client.put(
            f"/api/v1/users/{user.id}", json={"full_name": "Nombre Nuevo"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["full_name"] == "Nombre Nuevo"
        assert data["profile_id"] == str(admin_profile.id)
        assert data["is_active"] is True

    async def test_reassign_to_inactive_profile(
        self, authenticated_client: AsyncClient, db: AsyncSession, tenant: Tenant, user: User
    ):
        retired = await create_profile(db, tenant, name="Retirado", is_active=False)

        response = await authenticated_client.put(
            f"/api/v1/users/{user.id}", json={"profile_id": str(retired.id)}
        )

        assert response.status_code == 400
        assert response.json()["type"].endswith("/invalid_profile")

    async def test_deactivate_through_update(
        self,
        authenticated_client: AsyncClient,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
    ):
        operator = await create_user(db, tenant, None, email="operador@example.com")

        response = await authenticated_client.put(
            f"/api/v1/users/{operator.id}", json={"is_active": False}
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "operador@example.com", "password": TEST_PASSWORD},
        )
        assert login.status_code == 401


class TestProfiles:
    """Tests for /api/v1/profiles."""

    async def test_list_profiles(self, authenticated_client: AsyncClient, admin_profile: Profile):
        response = await authenticated_client.get("/api/v1/profiles")

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [str(admin_profile.id)]

    async def test_replace_roles(
        self,
        authenticated_client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        starter_roles: dict[str, Role],
    ):
        profile = await create_profile(db, tenant, name="Despachador")
        wanted = [starter_roles["ver_dashboard"].id, starter_roles["crear_ordenes"].id]

        response = await authenticated_client.put(
            f"/api/v1/profiles/{profile.id}/roles",
            json={"role_ids": [str(role_id) for role_id in wanted]},
        )

        assert response.status_code == 200
        assert set(response.json()["role_ids"]) == {str(role_id) for role_id in wanted}

        available = await authenticated_client.get(
            f"/api/v1/profiles/{profile.id}/available-roles"
        )
        assigned = {role["code"] for role in available.json() if role["assigned"]}
        assert assigned == {"ver_dashboard", "crear_ordenes"}

    async def test_replace_roles_with_empty_set(
        self,
        authenticated_client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        starter_roles: dict[str, Role],
    ):
        profile = await create_profile(
            db, tenant, roles=[starter_roles["ver_dashboard"]], name="Temporal"
        )

        response = await authenticated_client.put(
            f"/api/v1/profiles/{profile.id}/roles", json={"role_ids": []}
        )

        assert response.status_code == 200
        assert response.json()["role_ids"] == []

    async def test_inactive_role_cannot_be_assigned(
        self,
        authenticated_client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        starter_roles: dict[str, Role],
    ):
        profile = await create_profile(db, tenant, name="Despachador")
        starter_roles["crear_ordenes"].is_active = False
        await db.flush()

        response = await authenticated_client.put(
            f"/api/v1/profiles/{profile.id}/roles",
            json={"role_ids": [str(starter_roles["crear_ordenes"].id)]},
        )

        assert response.status_code == 400

    async def test_create_profile(self, authenticated_client: AsyncClient, db: AsyncSession):
        response = await authenticated_client.post(
            "/api/v1/profiles", json={"name": "Despachador", "description": "Turno noche"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Despachador"
        assert data["is_active"] is True

        detail = await authenticated_client.get(f"/api/v1/profiles/{data['id']}")
        assert detail.json()["roles"] == []

        actions = (
            await db.execute(select(AuditLog.action).where(AuditLog.resource_id == data["id"]))
        ).scalars().all()
        assert actions == ["create_profile"]

    async def test_create_duplicate_profile(
        self, authenticated_client: AsyncClient, admin_profile: Profile
    ):
        response = await authenticated_client.post(
            "/api/v1/profiles", json={"name": admin_profile.name}
        )

        assert response.status_code == 409
        assert response.json()["type"].endswith("/profile_name_exists")

    async def test_get_profile_lists_roles(
        self,
        authenticated_client: AsyncClient,
        admin_profile: Profile,
        starter_roles: dict[str, Role],
    ):
        response = await authenticated_client.get(f"/api/v1/profiles/{admin_profile.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == admin_profile.name
        assert {role["code"] for role in data["roles"]} == set(starter_roles)

    async def test_rename_profile(
        self, authenticated_client: AsyncClient, db: AsyncSession, tenant: Tenant
    ):
        profile = await create_profile(db, tenant, name="Despachador")

        response = await authenticated_client.put(
            f"/api/v1/profiles/{profile.id}", json={"name": "Coordinador"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Coordinador"

    async def test_rename_to_taken_name(
        self,
        authenticated_client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        admin_profile: Profile,
    ):
        profile = await create_profile(db, tenant, name="Despachador")

        response = await authenticated_client.put(
            f"/api/v1/profiles/{profile.id}", json={"name": admin_profile.name}
        )

        assert response.status_code == 409

    async def test_deactivated_profile_grants_nothing(
        self,
        authenticated_client: AsyncClient,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        starter_roles: dict[str, Role],
    ):
        profile = await create_profile(
            db, tenant, roles=[starter_roles[PERM_VIEW_DASHBOARD]], name="Operador"
        )
        await create_user(db, tenant, profile, email="operador@example.com")

        response = await authenticated_client.delete(f"/api/v1/profiles/{profile.id}")

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "operador@example.com", "password": TEST_PASSWORD},
        )
        assert login.json()["user"]["permissions"] == []

    async def test_get_unknown_profile(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get(f"/api/v1/profiles/{uuid4()}")

        assert response.status_code == 404


class TestRoles:
    """Tests for /api/v1/roles."""

    async def test_list_roles(
        self, authenticated_client: AsyncClient, starter_roles: dict[str, Role]
    ):
        response = await authenticated_client.get("/api/v1/roles")

        assert response.status_code == 200
        assert {role["code"] for role in response.json()} == set(starter_roles)

    async def test_create_role(self, authenticated_client: AsyncClient, db: AsyncSession):
        db.add(ActionType(code="VER", description="Ver"))
        await db.flush()

        response = await authenticated_client.post(
            "/api/v1/roles",
            json={
                "code": "ver_flota",
                "name": "Ver Flota",
                "module": "flota",
                "action_type": "VER",
            },
        )

        assert response.status_code == 201
        assert response.json()["code"] == "ver_flota"

    async def test_create_duplicate_role(
        self, authenticated_client: AsyncClient, starter_roles: dict[str, Role]
    ):
        response = await authenticated_client.post(
            "/api/v1/roles",
            json={
                "code": "ver_dashboard",
                "name": "Ver Dashboard",
                "module": "dashboard",
                "action_type": "VER",
            },
        )

        assert response.status_code == 409

    async def test_unknown_action_type(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/v1/roles",
            json={"code": "ver_flota", "name": "Ver Flota", "module": "flota", "action_type": "X"},
        )

        assert response.status_code == 400

    async def test_invalid_code(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/api/v1/roles",
            json={
                "code": "Ver Flota",
                "name": "Ver Flota",
                "module": "flota",
                "action_type": "VER",
            },
        )

        assert response.status_code == 422

    async def test_get_role(
        self, authenticated_client: AsyncClient, starter_roles: dict[str, Role]
    ):
        role = starter_roles[PERM_VIEW_DASHBOARD]

        response = await authenticated_client.get(f"/api/v1/roles/{role.id}")

        assert response.status_code == 200
        assert response.json()["code"] == PERM_VIEW_DASHBOARD

    async def test_update_role(
        self, authenticated_client: AsyncClient, starter_roles: dict[str, Role]
    ):
        role = starter_roles[PERM_VIEW_DASHBOARD]

        response = await authenticated_client.put(
            f"/api/v1/roles/{role.id}", json={"name": "Ver Panel", "sort_order": 9}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Ver Panel"
        assert data["sort_order"] == 9
        assert data["code"] == PERM_VIEW_DASHBOARD

    async def test_system_wide_role_is_read_only(
        self, authenticated_client: AsyncClient, db: AsyncSession
    ):
        shared = await create_role(db, "ver_reportes", tenant_id=None)

        read = await authenticated_client.get(f"/api/v1/roles/{shared.id}")
        update = await authenticated_client.put(
            f"/api/v1/roles/{shared.id}", json={"name": "Cambiado"}
        )
        delete = await authenticated_client.delete(f"/api/v1/roles/{shared.id}")

        assert read.status_code == 200
        assert update.status_code == 404
        assert delete.status_code == 404
        assert shared.is_active is True

    async def test_deactivated_role_stops_granting(
        self, authenticated_client: AsyncClient, starter_roles: dict[str, Role]
    ):
        """The token still carries the role id, but the role no longer satisfies the guard."""
        manage = starter_roles[PERM_MANAGE_ROLES]

        response = await authenticated_client.delete(f"/api/v1/roles/{manage.id}")

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        listing = await authenticated_client.get("/api/v1/roles")
        assert listing.status_code == 403
        assert listing.json()["type"].endswith("/permission_denied")


class TestHealth:
    async def test_liveness(self, client: AsyncClient):
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_readiness(self, client: AsyncClient):
        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] == "ok"

    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
