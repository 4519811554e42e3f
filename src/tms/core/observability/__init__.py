"""Tracing for requests, SQL and the authorization path."""

from tms.core.observability.tracing import get_tracer, setup_tracing, shutdown_tracing


__all__ = ["get_tracer", "setup_tracing", "shutdown_tracing"]
