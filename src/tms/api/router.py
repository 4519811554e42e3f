"""Assembly of the HTTP surface."""

from fastapi import APIRouter

from tms.api import health
from tms.core.auth.routes import router as auth_router
from tms.modules import discover_modules


API_V1_PREFIX = "/api/v1"


def build_api_router() -> APIRouter:
    """Health probes plus ``/api/v1`` with auth and every feature module."""
    v1 = APIRouter(prefix=API_V1_PREFIX)
    v1.include_router(auth_router)
    for module_router in discover_modules():
        v1.include_router(module_router)

    root = APIRouter()
    root.include_router(health.router)
    root.include_router(v1)
    return root
