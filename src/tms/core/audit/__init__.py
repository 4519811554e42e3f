"""Audit trail for security-relevant changes."""

from tms.core.audit.models import AuditLog
from tms.core.audit.service import AuditService


__all__ = ["AuditLog", "AuditService"]
