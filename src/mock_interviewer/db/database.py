"""
Async engine and session factory management.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mock_interviewer.config import get_settings
from mock_interviewer.db.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the async engine and hands out transactional sessions.

    Each transaction() block commits on success and rolls back on error,
    so a failed step never leaves partial rows behind.
    """

    def __init__(self, url: str | None = None, echo: bool = False) -> None:
        """
        Initialize the database.

        Args:
            url: SQLAlchemy async URL. Defaults to settings.database_url.
            echo: Log emitted SQL.
        """
        self._url = url or get_settings().database_url
        self._engine: AsyncEngine = create_async_engine(self._url, echo=echo)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        """Get the underlying async engine."""
        return self._engine

    async def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session wrapped in a single transaction.

        Yields:
            AsyncSession bound to the open transaction.
        """
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self._engine.dispose()
