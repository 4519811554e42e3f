"""Engine, session factory and the per-request session dependency."""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tms.config import settings


logger = structlog.get_logger()

async_engine = create_async_engine(
    settings.async_database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

# Objects stay usable after commit: responses are built from them
async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One unit of work per request.

    Commits after the handler returns. Any exception, cancellation
    included, rolls back everything the request wrote, audit rows too.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException as exc:
            await session.rollback()
            logger.debug("transaction_rolled_back", error_type=type(exc).__name__)
            raise
