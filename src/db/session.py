"""Async SQLAlchemy session providers."""
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager, AbstractAsyncContextManager
from typing import Protocol

from fastapi import Request
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings
from models.base import Base
from services.exceptions import ConnectionFailedError

logger = logging.getLogger(__name__)


class SessionProvider(Protocol):
    """Anything that can hand out a database session with a live connection."""

    def acquire(self) -> AbstractAsyncContextManager[AsyncSession]:
        """
        Check out a connection and yield a session bound to it.

        Raises:
            ConnectionFailedError: If no connection could be established.
        """
        ...


class PooledSessionProvider:
    """Production provider backed by the engine's connection pool."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PooledSessionProvider":
        """Build a provider with pool sizing taken from settings."""
        engine = create_async_engine(
            settings.database_url,
            echo=False,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        return cls(engine)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncSession]:
        """Yield a session whose connection is already checked out of the pool."""
        async with self._session_factory() as session:
            try:
                await session.connection()
            except (OperationalError, InterfaceError, OSError) as e:
                logger.error("Failed to acquire database connection: %s", e)
                raise ConnectionFailedError() from e
            yield session

    async def create_schema(self) -> None:
        """Create all tables that don't exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session from the app's provider.

    Uses unit-of-work pattern: services use flush() for refreshing objects,
    commit happens once here at request end. This ensures atomic transactions
    per request - if anything fails, all changes are rolled back.
    """
    provider: SessionProvider = request.app.state.session_provider
    async with provider.acquire() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
