"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import tms.models  # noqa: F401
from tms import __version__
from tms.api import get_api_router
from tms.config import settings
from tms.core.database import async_engine
from tms.core.errors import register_exception_handlers
from tms.core.logging import RequestContextMiddleware, configure_logging
from tms.core.observability import setup_tracing, shutdown_tracing


logger = structlog.get_logger()

DEV_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        external_login=settings.external_auth_enabled,
        jit_provisioning=settings.jit_provisioning_enabled,
        access_token_minutes=settings.access_token_expire_minutes,
    )

    yield

    logger.info("application_shutdown")
    shutdown_tracing()
    await async_engine.dispose()


def create_app() -> FastAPI:
    """Build the back office API.

    Logging is configured here so that importing the package has no
    side effects.
    """
    configure_logging()

    expose_docs = not settings.is_production
    app = FastAPI(
        title=settings.app_name,
        description="Identity, tenancy and permissions for the transport back office",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
        openapi_url="/openapi.json" if expose_docs else None,
    )

    origins = settings.cors_origins or (DEV_CORS_ORIGINS if settings.is_development else [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)
    app.include_router(get_api_router())
    setup_tracing(app)

    return app
