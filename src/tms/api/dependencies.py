"""Request-scoped dependencies shared by routes, services and repositories."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tms.core.database import get_db


# One session per request; services and repositories built by FastAPI
# in the same request share it.
DBSession = Annotated[AsyncSession, Depends(get_db)]
