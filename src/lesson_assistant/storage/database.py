"""Async engine, session factory and the FastAPI session dependency."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lesson_assistant.config import settings


def create_engine_and_sessionmaker(
    database_url: str,
    *,
    echo: bool = False,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Build an async engine and a session factory bound to it.

    ``expire_on_commit=False`` keeps ORM objects readable after a route
    commits, so they can still be serialized into the response.
    """
    engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    return engine, factory


engine, async_session = create_engine_and_sessionmaker(settings.database_url)


async def get_session() -> AsyncGenerator[AsyncSession]:
    """Yield one session per request; roll back if the handler raised."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
