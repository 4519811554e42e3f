"""Feature modules with auto-discovery.

A module exposes its API by defining ``router`` in a ``routes``
submodule. Package ``__init__`` files stay import-free so models can be
imported without pulling in routes.
"""

from importlib import import_module
from importlib.util import find_spec
from pathlib import Path

import structlog
from fastapi import APIRouter


logger = structlog.get_logger()


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_"):
            continue

        name = f"{__name__}.{path.name}.routes"
        if find_spec(name) is None:
            continue

        module = import_module(name)
        router = getattr(module, "router", None)
        if isinstance(router, APIRouter):
            routers.append(router)
            logger.info("module_loaded", module=path.name)

    return routers
