"""Recording of audit entries."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tms.core.audit.models import AuditLog


log = structlog.get_logger()


class AuditService:
    """Writes audit entries in the caller's transaction.

    Entries are committed or rolled back together with the change they
    describe.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        action: str,
        resource_type: str,
        resource_id: UUID | str | None = None,
        tenant_id: UUID | None = None,
        user_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Add an audit entry to the current transaction.

        Args:
            action: What happened
            resource_type: Kind of resource affected
            resource_id: The affected resource
            tenant_id: Tenant the action belongs to
            user_id: Acting user, None for system actions
            metadata: Extra context; must not contain secrets

        Returns:
            The pending entry
        """
        request_id = structlog.contextvars.get_contextvars().get("request_id")
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            tenant_id=tenant_id,
            user_id=user_id,
            request_id=request_id,
            metadata_=metadata,
        )
        self.session.add(entry)
        await self.session.flush()

        log.info(
            "audit_recorded",
            action=action,
            resource_type=resource_type,
            resource_id=entry.resource_id,
        )
        return entry
