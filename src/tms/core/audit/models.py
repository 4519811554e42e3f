"""Audit trail of identity changes.

One row per change to who can do what: provisioning, role assignment,
account creation and deactivation, password changes. Rows outlive the
tenants and users they mention; their foreign keys are nulled, not
cascaded.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from tms.core.database.base import Base, JSONType, UUIDMixin


class AuditLog(Base, UUIDMixin):
    """A recorded identity change.

    ``user_id`` is the actor and is NULL for system actions such as
    just-in-time provisioning. ``metadata_`` never holds secrets.
    """

    __tablename__ = "audit_logs"

    tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"), index=True
    )
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )

    # e.g. jit_provision / assign_roles, applied to tenant / profile / user
    action: Mapped[str] = mapped_column(String(50), index=True)
    resource_type: Mapped[str] = mapped_column(String(100))
    resource_id: Mapped[str | None] = mapped_column(String(255), index=True)

    request_id: Mapped[str | None] = mapped_column(String(64))
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONType)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"
