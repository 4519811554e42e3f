"""Profile and profile-role database models."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tms.core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from tms.core.database.base import ActiveMixin, Base, TenantMixin, TimestampMixin, UUIDMixin


if TYPE_CHECKING:
    from tms.modules.catalogs.models import ProfileType


class Profile(Base, UUIDMixin, TimestampMixin, TenantMixin, ActiveMixin):
    """A named bundle of roles scoped to a tenant.

    Attributes:
        name: Unique within the tenant
        description: Free text
        is_active: Inactive profiles grant nothing
        profile_type_id: Kind of profile
    """

    __tablename__ = "profiles"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_profiles_tenant_name"),)

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )
    profile_type_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profile_types.id", ondelete="RESTRICT"),
        nullable=True,
    )

    profile_type: Mapped["ProfileType | None"] = relationship(
        "ProfileType",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name={self.name}, tenant_id={self.tenant_id})>"


class ProfileRole(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Grant of one role to one profile."""

    __tablename__ = "profile_roles"
    __table_args__ = (
        UniqueConstraint("profile_id", "role_id", name="uq_profile_roles_profile_role"),
    )

    profile_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ProfileRole(profile_id={self.profile_id}, role_id={self.role_id})>"
