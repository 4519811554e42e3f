"""Verified request context handed to resource handlers."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from tms.core.errors import TenantContextMissingError
from tms.core.permissions.types import PermissionSet, RoleId


class AuthState(StrEnum):
    """Where a single request is in the authorization flow.

    Every request starts at UNAUTHENTICATED; nothing carries over between
    requests. TOKEN_PRESENTED moves to VERIFIED or REJECTED, and a
    VERIFIED request that is permission-checked ends AUTHORIZED or
    FORBIDDEN.
    """

    UNAUTHENTICATED = "unauthenticated"
    TOKEN_PRESENTED = "token_presented"
    VERIFIED = "verified"
    REJECTED = "rejected"
    AUTHORIZED = "authorized"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Claims of a verified access token.

    Attributes:
        user_id: The token subject
        email: Email at mint time
        tenant_id: Owning tenant, None if the token carried none
        profile_id: Profile at mint time
        permissions: Role ids granted at mint time
    """

    user_id: UUID
    email: str
    tenant_id: UUID | None
    profile_id: UUID | None
    permissions: PermissionSet

    def has_role(self, role: RoleId) -> bool:
        """Check a role id against the embedded permission set."""
        return role in self.permissions

    def require_tenant(self) -> UUID:
        """Return the tenant id or fail the request.

        Raises:
            TenantContextMissingError: If the token carries no tenant
        """
        if self.tenant_id is None:
            raise TenantContextMissingError()
        return self.tenant_id


@dataclass(frozen=True, slots=True)
class TenantScope:
    """What a resource service needs from the caller: a tenant it may act in."""

    tenant_id: UUID
    user_id: UUID
    permissions: PermissionSet
