"""Shared lookup tables.

Rows are identified by a stable ``code``; descriptions are for display.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from tms.core.constants import MAX_DESCRIPTION_LENGTH, MAX_LOOKUP_CODE_LENGTH
from tms.core.database.base import Base, TimestampMixin, UUIDMixin


class LookupMixin:
    """Code and description columns shared by every lookup table."""

    code: Mapped[str] = mapped_column(
        String(MAX_LOOKUP_CODE_LENGTH),
        nullable=False,
        unique=True,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.code})>"


class UserStatus(Base, UUIDMixin, TimestampMixin, LookupMixin):
    """User account status (ACTIVO, INACTIVO, ...)."""

    __tablename__ = "user_statuses"


class UserType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    """Kind of user account."""

    __tablename__ = "user_types"


class TenantType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    """Kind of tenant (ADMIN, carrier, shipper, ...)."""

    __tablename__ = "tenant_types"


class ProfileType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    """Kind of profile, returned to clients as ``profile_type``."""

    __tablename__ = "profile_types"


class ActionType(Base, UUIDMixin, TimestampMixin, LookupMixin):
    """What a role allows on its module (VER, CREAR, EDITAR, ...)."""

    __tablename__ = "action_types"
