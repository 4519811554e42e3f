"""Pytest configuration and shared fixtures."""

import os


# Settings are read at import time; the signing key has no default.
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key-that-is-long-enough-0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "10")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

from tms.core.auth.backend import create_access_token  # noqa: E402
from tms.core.auth.schemas import SessionClaims  # noqa: E402
from tms.core.constants import STARTER_ROLES  # noqa: E402
from tms.core.database import get_db  # noqa: E402
from tms.core.permissions.types import role_id  # noqa: E402
from tms.main import create_app  # noqa: E402
from tms.models import Base  # noqa: E402
from tms.modules.profiles.models import Profile  # noqa: E402
from tms.modules.roles.models import Role  # noqa: E402
from tms.modules.tenants.models import Tenant  # noqa: E402
from tms.modules.users.models import User  # noqa: E402
from tests.factories.identity import (  # noqa: E402
    TEST_EMAIL,
    create_profile,
    create_role,
    create_tenant,
    create_user,
)


# In-memory SQLite by default; point at PostgreSQL to run against the real dialect
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest.fixture(scope="function")
async def engine():
    """Create a test database engine with a fresh schema."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

        # Let SQLAlchemy own BEGIN so that SAVEPOINTs behave
        @event.listens_for(engine.sync_engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, _record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests.

    The session is rolled back when the test completes.
    """
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def app(db: AsyncSession):
    """Create test application instance."""
    application = create_app()

    # Override database dependency
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"


# ============================================================
# Tenant, Profile and User Fixtures
# ============================================================


@pytest.fixture
async def tenant(db: AsyncSession) -> Tenant:
    """Create the test tenant."""
    return await create_tenant(db, name="Transportes del Norte")


@pytest.fixture
async def starter_roles(db: AsyncSession, tenant: Tenant) -> dict[str, Role]:
    """Create the starter roles in the test tenant, keyed by code."""
    roles = {}
    for order, (code, name, module, _action) in enumerate(STARTER_ROLES):
        roles[code] = await create_role(
            db, code, tenant_id=tenant.id, name=name, module=module, sort_order=order
        )
    return roles


@pytest.fixture
async def admin_profile(
    db: AsyncSession, tenant: Tenant, starter_roles: dict[str, Role]
) -> Profile:
    """Create a profile holding every starter role."""
    return await create_profile(db, tenant, roles=starter_roles.values(), name="Administrador")


@pytest.fixture
async def user(db: AsyncSession, tenant: Tenant, admin_profile: Profile) -> User:
    """Create the test user (test@example.com) holding the admin profile."""
    return await create_user(db, tenant, admin_profile, email=TEST_EMAIL)


@pytest.fixture
def admin_token(user: User, starter_roles: dict[str, Role]) -> str:
    """Access token for the test user embedding every starter role id."""
    return create_access_token(
        SessionClaims(
            subject=user.id,
            email=user.email,
            tenant_id=user.tenant_id,
            profile_id=user.profile_id,
            permissions=frozenset(role_id(role.id) for role in starter_roles.values()),
        )
    )


@pytest.fixture
def auth_headers(admin_token: str) -> dict[str, str]:
    """Authorization headers carrying the admin token."""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
async def authenticated_client(
    app, auth_headers: dict[str, str]
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an HTTP client authenticated as the test user."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers,
    ) as client:
        yield client
