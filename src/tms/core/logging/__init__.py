"""Structured logging setup and request context."""

from tms.core.logging.config import configure_logging
from tms.core.logging.middleware import RequestContextMiddleware, get_client_ip


__all__ = ["RequestContextMiddleware", "configure_logging", "get_client_ip"]
