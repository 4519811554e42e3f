"""Authentication schemas for token handling."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tms.core.permissions.types import PermissionSet


class SessionClaims(BaseModel):
    """What an access token asserts about its holder.

    Attributes:
        subject: The user's UUID
        email: The user's email at mint time
        tenant_id: The owning tenant
        profile_id: The user's profile at mint time
        permissions: Role ids granted through the profile at mint time
    """

    model_config = ConfigDict(frozen=True)

    subject: UUID
    email: str
    tenant_id: UUID | None
    profile_id: UUID | None
    permissions: PermissionSet = Field(default_factory=frozenset)


class TokenData(SessionClaims):
    """Data extracted from a verified access token.

    Attributes:
        issued_at: When the token was minted
        expires_at: First instant at which the token is rejected
        jti: Unique token id
    """

    issued_at: datetime
    expires_at: datetime
    jti: str | None = None

    def claims(self) -> SessionClaims:
        """Return the minted claims without the timing fields."""
        return SessionClaims(
            subject=self.subject,
            email=self.email,
            tenant_id=self.tenant_id,
            profile_id=self.profile_id,
            permissions=self.permissions,
        )


class RefreshTokenData(BaseModel):
    """Data extracted from a verified refresh token."""

    model_config = ConfigDict(frozen=True)

    subject: UUID
    issued_at: datetime
    expires_at: datetime
    jti: str | None = None


class TokenPair(BaseModel):
    """A pair of access and refresh tokens.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived JWT for getting new access tokens
        token_type: Always "bearer"
        expires_in: Access token expiration in seconds
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class ExternalAssertion(BaseModel):
    """Normalized claims of a verified identity provider token.

    Attributes:
        subject: The provider's subject id
        email: The asserted email address
        email_verified: Whether the provider verified the email
        name: Display name, falling back to the email
        tenant_hint: Optional tenant id carried in a custom claim
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    email: str
    email_verified: bool = False
    name: str
    tenant_hint: str | None = None


# ============================================================
# Request / Response Schemas
# ============================================================


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=1024)


class RefreshTokenRequest(BaseModel):
    """Schema for refreshing a session."""

    refresh_token: str


class ChangePasswordRequest(BaseModel):
    """Schema for changing one's own password.

    Length rules for the new password are enforced by the service so that
    they are checked before any hashing happens.
    """

    current_password: str = Field(..., min_length=1, max_length=1024)
    new_password: str = Field(..., max_length=1024)


class SessionUser(BaseModel):
    """The user a session was issued to."""

    id: UUID
    email: str
    name: str
    tenant_id: UUID
    profile_id: UUID | None
    profile_type: str | None = None
    permissions: list[str]


class LoginResponse(TokenPair):
    """Token pair plus the user it was issued to."""

    user: SessionUser


class MeResponse(BaseModel):
    """Claims of the caller's verified access token."""

    id: UUID
    email: str
    tenant_id: UUID | None
    profile_id: UUID | None
    permissions: list[str]
