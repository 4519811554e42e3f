"""Role database model."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tms.core.constants import MAX_CODE_LENGTH, MAX_MODULE_LENGTH, MAX_NAME_LENGTH
from tms.core.database.base import (
    ActiveMixin,
    Base,
    SharedTenantMixin,
    TimestampMixin,
    UUIDMixin,
)
from tms.core.permissions.types import RoleCode, RoleRef, role_id


if TYPE_CHECKING:
    from tms.modules.catalogs.models import ActionType


class Role(Base, UUIDMixin, TimestampMixin, SharedTenantMixin, ActiveMixin):
    """A single permission unit.

    The ``id`` is what session tokens carry and what the API checks;
    ``code`` is the readable key shown to administrators. A NULL
    ``tenant_id`` makes the role available to every tenant.

    Attributes:
        code: Readable permission key, unique within the tenant
        name: Display name
        module: Functional area the role belongs to
        action_type_id: What the role allows on its module
        is_active: Inactive roles cannot be assigned
        is_visible: Whether the admin UI lists the role
        sort_order: Display order within the module
    """

    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_roles_tenant_code"),)

    code: Mapped[str] = mapped_column(
        String(MAX_CODE_LENGTH),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    module: Mapped[str] = mapped_column(
        String(MAX_MODULE_LENGTH),
        nullable=False,
    )
    action_type_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("action_types.id", ondelete="RESTRICT"),
        nullable=True,
    )
    is_visible: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    action_type: Mapped["ActionType | None"] = relationship(
        "ActionType",
        lazy="selectin",
    )

    def ref(self) -> RoleRef:
        """Return the id/code pair of this role."""
        return RoleRef(id=role_id(self.id), code=RoleCode(self.code))

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, code={self.code}, tenant_id={self.tenant_id})>"
