"""User database model."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tms.core.constants import MAX_EMAIL_LENGTH, MAX_EXTERNAL_SUBJECT_LENGTH, MAX_NAME_LENGTH
from tms.core.database.base import ActiveMixin, Base, TenantMixin, TimestampMixin, UUIDMixin


if TYPE_CHECKING:
    from tms.modules.catalogs.models import UserStatus, UserType
    from tms.modules.profiles.models import Profile
    from tms.modules.tenants.models import Tenant


class User(Base, UUIDMixin, TimestampMixin, TenantMixin, ActiveMixin):
    """An authenticatable identity.

    Users belong to exactly one tenant and hold exactly one profile.
    An inactive user is refused at login whatever the credential.

    Attributes:
        email: Unique within the tenant
        full_name: Display name
        is_active: Whether the user can log in
        password_hash: Bcrypt hash, NULL for identity provider accounts
        external_subject: Subject id at the identity provider
        status_id: Account status
        user_type_id: Kind of account
        profile_id: The profile granting this user's roles
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),)

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        index=True,
    )
    full_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    password_hash: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    external_subject: Mapped[str | None] = mapped_column(
        String(MAX_EXTERNAL_SUBJECT_LENGTH),
        nullable=True,
        index=True,
    )
    status_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("user_statuses.id", ondelete="RESTRICT"),
        nullable=True,
    )
    user_type_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("user_types.id", ondelete="RESTRICT"),
        nullable=True,
    )
    profile_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(
        "Tenant",
        lazy="selectin",
    )
    profile: Mapped["Profile | None"] = relationship(
        "Profile",
        lazy="selectin",
    )
    status: Mapped["UserStatus | None"] = relationship(
        "UserStatus",
        lazy="selectin",
    )
    user_type: Mapped["UserType | None"] = relationship(
        "UserType",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, tenant_id={self.tenant_id})>"
