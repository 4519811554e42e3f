"""HTTP routing and shared request dependencies."""

from fastapi import APIRouter


def get_api_router() -> APIRouter:
    # Deferred: route modules import services that import this package
    from tms.api.router import build_api_router  # noqa: PLC0415

    return build_api_router()


__all__ = ["get_api_router"]
