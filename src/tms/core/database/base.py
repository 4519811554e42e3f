"""Declarative base and the column mixins shared by identity tables."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# JSONB on PostgreSQL, plain JSON on SQLite test databases
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


def _tenant_fk() -> ForeignKey:
    # Tenants are deactivated, never deleted, while rows still point at them
    return ForeignKey("tenants.id", ondelete="RESTRICT")


class UUIDMixin:
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4, index=True)


class TimestampMixin:
    """``created_at`` and ``updated_at`` maintained by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ActiveMixin:
    """Soft on/off switch.

    Identity records are deactivated instead of deleted so that audit
    rows and issued tokens keep pointing at something.
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class TenantMixin:
    """Row owned by exactly one tenant.

    Every repository query on these tables filters by ``tenant_id``.
    """

    tenant_id: Mapped[UUID] = mapped_column(_tenant_fk(), index=True, nullable=False)


class SharedTenantMixin:
    """Row owned by one tenant, or system-wide when ``tenant_id`` is NULL."""

    tenant_id: Mapped[UUID | None] = mapped_column(_tenant_fk(), index=True, nullable=True)
