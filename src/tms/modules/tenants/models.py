"""Tenant database model."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tms.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_LOOKUP_CODE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_TAX_ID_LENGTH,
    USER_STATUS_ACTIVE,
)
from tms.core.database.base import ActiveMixin, Base, TimestampMixin, UUIDMixin


if TYPE_CHECKING:
    from tms.modules.catalogs.models import TenantType


class Tenant(Base, UUIDMixin, TimestampMixin, ActiveMixin):
    """An organization boundary; almost every row belongs to one.

    Tenants are never hard-deleted, only deactivated.

    Attributes:
        name: Legal name
        tax_id: Tax identification number
        contact_email: Administrative contact
        is_active: Whether the tenant's users may act
        status: Lifecycle status code
        tenant_type_id: Kind of tenant
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    tax_id: Mapped[str | None] = mapped_column(
        String(MAX_TAX_ID_LENGTH),
        nullable=True,
    )
    contact_email: Mapped[str | None] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_LOOKUP_CODE_LENGTH),
        default=USER_STATUS_ACTIVE,
        nullable=False,
    )
    tenant_type_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenant_types.id", ondelete="RESTRICT"),
        nullable=True,
    )

    tenant_type: Mapped["TenantType | None"] = relationship(
        "TenantType",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name})>"
