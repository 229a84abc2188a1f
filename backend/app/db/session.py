"""
Database session configuration.

The engine and session factory live on a `Database` object that is built
during application startup and disposed on shutdown. Request handlers get
sessions through the `get_db` dependency instead of a module-level engine.
"""

from typing import Any, AsyncIterator
from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

# Create declarative base for models
Base = declarative_base()


class Database:
    """
    Owns the async engine and session factory for one process.

    Usage:
        database = Database(settings.database_url, pool_size=20)
        await database.create_all()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any):
        self.url = url
        self.engine = create_async_engine(url, echo=echo, future=True, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all registered tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def build_database(settings) -> Database:
    """Build the production database from settings."""
    kwargs = {}
    if not settings.database_url.startswith("sqlite"):
        kwargs = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
        }
    return Database(settings.database_url, echo=settings.db_echo, **kwargs)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for database sessions.

    Yields an async database session from the application's Database and
    ensures it's properly closed.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
