"""OpenTelemetry tracing.

Requests and SQL statements are instrumented automatically once
``setup_tracing`` installs a provider. Identity code opens its own spans
through ``get_tracer``; those calls are no-ops while tracing is off.

Span attributes carry codes, counts and outcomes, never tokens,
password material or permission sets.
"""

import structlog
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from tms import __version__
from tms.config import settings
from tms.core.database import async_engine


log = structlog.get_logger()

UNTRACED_URLS = "health/.*,docs,redoc,openapi.json"


def _span_processor() -> SpanProcessor | None:
    if settings.otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=settings.otlp_endpoint,
            insecure=not settings.otlp_endpoint.startswith("https"),
        )
        return BatchSpanProcessor(exporter)
    if settings.debug:
        return BatchSpanProcessor(ConsoleSpanExporter())
    return None


def setup_tracing(app: FastAPI) -> bool:
    """Install a tracer provider and instrument ``app`` and the engine.

    Returns:
        False when neither OTLP_ENDPOINT nor DEBUG asks for tracing
    """
    processor = _span_processor()
    if processor is None:
        log.debug("tracing_disabled")
        return False

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.app_name.lower().replace(" ", "-"),
                "service.version": __version__,
                "deployment.environment": settings.environment,
            }
        )
    )
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)
    SQLAlchemyInstrumentor().instrument(engine=async_engine.sync_engine)

    log.info("tracing_enabled", exporter="otlp" if settings.otlp_endpoint else "console")
    return True


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name, __version__)


def shutdown_tracing() -> None:
    """Flush pending spans."""
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()
