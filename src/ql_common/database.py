"""Async SQLAlchemy engine and the per-request session dependency.

Only used when PERSISTENCE_ENABLED is on. The engine connects lazily, so an
in-memory deployment never opens a connection even though it is built here.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession | None, None]:
    """FastAPI dependency: a session for LaunchpadService to commit into.

    Yields None in in-memory mode; the service then skips persistence.
    """
    if not settings.PERSISTENCE_ENABLED:
        yield None
        return
    async with async_session_factory() as session:
        yield session
