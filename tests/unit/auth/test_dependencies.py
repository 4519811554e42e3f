"""Unit tests for the request authorization guard."""

from uuid import uuid4

import pytest
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials

from tms.core.auth.backend import create_access_token, create_refresh_token
from tms.core.auth.context import AuthContext, AuthState
from tms.core.auth.dependencies import get_auth_context, get_tenant_scope
from tms.core.auth.schemas import SessionClaims
from tms.core.errors import InvalidTokenError, TenantContextMissingError, UnauthenticatedError
from tms.core.permissions.types import role_id


pytestmark = pytest.mark.unit


def make_request(path: str = "/api/v1/anything") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": path,
            "query_string": b"",
            "headers": [],
            "scheme": "http",
            "server": ("test", 80),
        }
    )


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def make_context(tenant_id=None, permissions=frozenset()) -> AuthContext:
    return AuthContext(
        user_id=uuid4(),
        email="test@example.com",
        tenant_id=tenant_id,
        profile_id=None,
        permissions=permissions,
    )


class TestGetAuthContext:
    """Tests for bearer token verification."""

    async def test_missing_token(self):
        request = make_request()

        with pytest.raises(UnauthenticatedError) as exc_info:
            await get_auth_context(request, None)

        assert not isinstance(exc_info.value, InvalidTokenError)
        assert request.state.auth_state == AuthState.UNAUTHENTICATED

    async def test_invalid_token(self):
        request = make_request()

        with pytest.raises(InvalidTokenError):
            await get_auth_context(request, bearer("invalid.token.here"))

        assert request.state.auth_state == AuthState.REJECTED

    async def test_refresh_token_rejected(self):
        request = make_request()

        with pytest.raises(InvalidTokenError):
            await get_auth_context(request, bearer(create_refresh_token(uuid4())))

        assert request.state.auth_state == AuthState.REJECTED

    async def test_valid_token(self):
        claims = SessionClaims(
            subject=uuid4(),
            email="test@example.com",
            tenant_id=uuid4(),
            profile_id=uuid4(),
            permissions=frozenset({role_id(uuid4())}),
        )
        request = make_request()

        auth = await get_auth_context(request, bearer(create_access_token(claims)))

        assert auth.user_id == claims.subject
        assert auth.tenant_id == claims.tenant_id
        assert auth.profile_id == claims.profile_id
        assert auth.permissions == claims.permissions
        assert request.state.auth_state == AuthState.VERIFIED
        assert request.state.tenant_id == claims.tenant_id


class TestTenantScope:
    """Tenant context always comes from the token and is never defaulted."""

    async def test_scope(self):
        tenant_id = uuid4()
        permissions = frozenset({role_id(uuid4())})
        auth = make_context(tenant_id=tenant_id, permissions=permissions)

        scope = await get_tenant_scope(auth)

        assert scope.tenant_id == tenant_id
        assert scope.user_id == auth.user_id
        assert scope.permissions == permissions

    async def test_scope_without_tenant(self):
        with pytest.raises(TenantContextMissingError):
            await get_tenant_scope(make_context(tenant_id=None))


class TestAuthContext:
    def test_has_role(self):
        granted = role_id(uuid4())
        auth = make_context(permissions=frozenset({granted}))

        assert auth.has_role(granted) is True
        assert auth.has_role(role_id(uuid4())) is False

    def test_is_immutable(self):
        auth = make_context()

        with pytest.raises(AttributeError):
            auth.tenant_id = uuid4()  # type: ignore[misc]
