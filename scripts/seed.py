#!/usr/bin/env python
"""
Seed lookup rows, a tenant, an administrator profile and a test user.

Usage:
    python scripts/seed.py                 # default tenant + test@example.com
    python scripts/seed.py -s demo         # plus a second tenant with a read-only profile
"""

import argparse
import asyncio
import os
import sys


# Add src to path for imports
sys.path.insert(0, "src")

from tms.core.auth.backend import hash_password  # noqa: E402
from tms.core.constants import (  # noqa: E402
    STARTER_ROLES,
    TENANT_TYPE_ADMIN,
    USER_STATUS_ACTIVE,
    USER_STATUS_INACTIVE,
    USER_TYPE_DEFAULT,
)
from tms.core.database import async_session_factory  # noqa: E402
from tms.modules.catalogs.models import ActionType, TenantType, UserStatus, UserType  # noqa: E402
from tms.modules.profiles.models import Profile  # noqa: E402
from tms.modules.tenants.models import Tenant  # noqa: E402
from tms.modules.tenants.provisioning import TenantProvisioner  # noqa: E402
from tms.modules.users.models import User  # noqa: E402


TEST_EMAIL = "test@example.com"
DEMO_TENANT_NAME = "Transportes Andinos"
DEMO_EMAIL = "operador@example.com"


async def _ensure_user(
    provisioner: TenantProvisioner,
    email: str,
    full_name: str,
    password: str,
    tenant: Tenant,
    profile: Profile,
) -> None:
    existing = await provisioner.users.get_by_email(email, tenant.id)
    if existing is not None:
        print(f"User already exists: {email}")
        return

    status, _ = await provisioner.catalogs.get_or_create(UserStatus, USER_STATUS_ACTIVE, "Activo")
    user_type, _ = await provisioner.catalogs.get_or_create(UserType, USER_TYPE_DEFAULT)
    await provisioner.users.create(
        User(
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            is_active=True,
            status_id=status.id,
            user_type_id=user_type.id,
            tenant_id=tenant.id,
            profile_id=profile.id,
        )
    )
    print(f"Created user: {email} (tenant {tenant.name}, profile {profile.name})")


async def seed_default(password: str) -> None:
    """Create lookups, the default tenant with its profile and the test user."""
    async with async_session_factory() as session:
        provisioner = TenantProvisioner(session)

        await provisioner.catalogs.get_or_create(UserStatus, USER_STATUS_ACTIVE, "Activo")
        await provisioner.catalogs.get_or_create(UserStatus, USER_STATUS_INACTIVE, "Inactivo")
        for action in sorted({action for *_, action in STARTER_ROLES}):
            await provisioner.catalogs.get_or_create(ActionType, action)

        tenant = await provisioner.ensure_default_tenant()
        profile = await provisioner.ensure_default_profile(tenant)
        await _ensure_user(provisioner, TEST_EMAIL, "Usuario de Prueba", password, tenant, profile)

        await session.commit()
        print(f"Default tenant ready: {tenant.name} ({tenant.id})")


async def seed_demo(password: str) -> None:
    """Create a second tenant whose operator may only view the dashboard."""
    await seed_default(password)

    async with async_session_factory() as session:
        provisioner = TenantProvisioner(session)

        tenant = await provisioner.tenants.get_by_name(DEMO_TENANT_NAME)
        if tenant is None:
            tenant_type, _ = await provisioner.catalogs.get_or_create(TenantType, TENANT_TYPE_ADMIN)
            tenant = await provisioner.tenants.create(
                Tenant(name=DEMO_TENANT_NAME, tax_id="20123456789", tenant_type_id=tenant_type.id)
            )
            print(f"Created tenant: {tenant.name}")

        profile = await provisioner.profiles.get_by_name("Operador", tenant.id)
        if profile is None:
            profile = await provisioner.profiles.create(
                Profile(name="Operador", description="Solo lectura", tenant_id=tenant.id)
            )
        # First starter role: ver_dashboard
        code, name, module, action = STARTER_ROLES[0]
        role = await provisioner.ensure_role(tenant.id, code, name, module, action)
        await provisioner.profiles.add_roles(profile, [role.id])

        await _ensure_user(provisioner, DEMO_EMAIL, "Operador Demo", password, tenant, profile)
        await session.commit()


async def main(scenario: str, password: str) -> None:
    """Run the seeding based on scenario."""
    if scenario == "default":
        await seed_default(password)
    elif scenario == "demo":
        await seed_demo(password)
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: default, demo")
        sys.exit(1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed database with development data")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("SEED_PASSWORD", "password123"),
        help="Password for seeded users (default: $SEED_PASSWORD or password123)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario, args.password))
