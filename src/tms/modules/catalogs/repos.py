"""Repository for lookup tables."""

from typing import Annotated, TypeVar

from fastapi import Depends
from sqlalchemy import select

from tms.api.dependencies import DBSession
from tms.modules.catalogs.models import (
    ActionType,
    ProfileType,
    TenantType,
    UserStatus,
    UserType,
)


LookupT = TypeVar("LookupT", UserStatus, UserType, TenantType, ProfileType, ActionType)


class CatalogRepository:
    """Reads and seeds lookup rows by code."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get_by_code(self, model: type[LookupT], code: str) -> LookupT | None:
        """Get a lookup row by its code.

        Args:
            model: The lookup model class
            code: The lookup code

        Returns:
            The row if found, None otherwise
        """
        result = await self.session.execute(select(model).where(model.code == code))
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        model: type[LookupT],
        code: str,
        description: str | None = None,
    ) -> tuple[LookupT, bool]:
        """Get a lookup row by code, creating it if missing.

        Returns:
            Tuple of (row, was_created)
        """
        row = await self.get_by_code(model, code)
        if row is not None:
            return row, False

        row = model(code=code, description=description or code.title())
        self.session.add(row)
        await self.session.flush()
        return row, True


CatalogRepo = Annotated[CatalogRepository, Depends(CatalogRepository)]
