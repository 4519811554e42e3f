"""Persistence: declarative base, mixins and async sessions."""

from tms.core.database.base import (
    ActiveMixin,
    Base,
    JSONType,
    SharedTenantMixin,
    TenantMixin,
    TimestampMixin,
    UUIDMixin,
)
from tms.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "ActiveMixin",
    "Base",
    "JSONType",
    "SharedTenantMixin",
    "TenantMixin",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "get_db",
]
