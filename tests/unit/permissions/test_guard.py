"""Unit tests for the permission guard dependencies."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import Request

from tms.core.auth.context import AuthContext, AuthState
from tms.core.errors import ForbiddenError, TenantContextMissingError
from tms.core.permissions.dependencies import require_any_permission, require_permission
from tms.core.permissions.types import role_id


pytestmark = pytest.mark.unit


def make_request() -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/api/v1/users",
            "query_string": b"",
            "headers": [],
            "scheme": "http",
            "server": ("test", 80),
        }
    )


@pytest.fixture
def granted():
    return role_id(uuid4())


@pytest.fixture
def resolver():
    """Patch the resolver the guard builds and return the instance."""
    instance = MagicMock()
    instance.role_ids_for_code = AsyncMock(return_value=frozenset())
    with patch(
        "tms.core.permissions.dependencies.PermissionResolver", return_value=instance
    ):
        yield instance


def make_auth(permissions, tenant_id=None) -> AuthContext:
    return AuthContext(
        user_id=uuid4(),
        email="test@example.com",
        tenant_id=tenant_id or uuid4(),
        profile_id=None,
        permissions=frozenset(permissions),
    )


class TestRequirePermission:
    async def test_allows_when_role_id_is_in_token(self, resolver, granted):
        resolver.role_ids_for_code.return_value = frozenset({granted})
        auth = make_auth({granted})
        request = make_request()

        result = await require_permission("gestionar_usuarios")(request, auth, AsyncMock())

        assert result is auth
        assert request.state.auth_state == AuthState.AUTHORIZED
        resolver.role_ids_for_code.assert_awaited_once_with("gestionar_usuarios", auth.tenant_id)

    async def test_forbids_when_role_id_missing(self, resolver, granted):
        resolver.role_ids_for_code.return_value = frozenset({granted})
        request = make_request()

        with pytest.raises(ForbiddenError) as exc_info:
            await require_permission("gestionar_usuarios")(
                request, make_auth({role_id(uuid4())}), AsyncMock()
            )

        assert exc_info.value.error_code == "permission_denied"
        assert exc_info.value.status_code == 403
        assert request.state.auth_state == AuthState.FORBIDDEN

    async def test_forbids_when_no_active_role_has_code(self, resolver, granted):
        """A code no active role carries grants nothing, whatever the token says."""
        with pytest.raises(ForbiddenError):
            await require_permission("gestionar_usuarios")(
                make_request(), make_auth({granted}), AsyncMock()
            )

    async def test_requires_tenant(self, resolver, granted):
        auth = AuthContext(
            user_id=uuid4(),
            email="test@example.com",
            tenant_id=None,
            profile_id=None,
            permissions=frozenset({granted}),
        )

        with pytest.raises(TenantContextMissingError):
            await require_permission("gestionar_usuarios")(make_request(), auth, AsyncMock())

        resolver.role_ids_for_code.assert_not_awaited()


class TestRequireAnyPermission:
    async def test_second_code_grants(self, resolver, granted):
        resolver.role_ids_for_code.side_effect = [frozenset(), frozenset({granted})]
        request = make_request()

        await require_any_permission("gestionar_roles", "gestionar_perfiles")(
            request, make_auth({granted}), AsyncMock()
        )

        assert request.state.auth_state == AuthState.AUTHORIZED
        assert resolver.role_ids_for_code.await_count == 2

    async def test_none_grants(self, resolver, granted):
        with pytest.raises(ForbiddenError):
            await require_any_permission("gestionar_roles", "gestionar_perfiles")(
                make_request(), make_auth({granted}), AsyncMock()
            )
