# 📄 File: app/shared/infrastructure/database/session.py
#
# 🧭 Purpose (Layman Explanation):
# Manages database sessions (like conversations with the database) ensuring each request
# or event gets its own clean session and that half-finished changes are rolled back.
#
# 🧪 Purpose (Technical Summary):
# Async SQLAlchemy engine and session management per service with commit / rollback
# handling and schema bootstrap for development and tests.
#
# 🔗 Dependencies:
# - sqlalchemy.ext.asyncio (create_async_engine, async_sessionmaker, AsyncSession)
# - asyncpg (PostgreSQL driver) / aiosqlite (tests)
#
# 🔄 Connected Modules / Calls From:
# - app.main (one manager per service, created in the lifespan)
# - Repository implementations and the consistency coordinator

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import MetaData, exc, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.shared.core.exceptions import RepositoryError

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """
    Owns one async engine and hands out transactional sessions.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
        pool_timeout: Optional[int] = None,
        pool_recycle: Optional[int] = None,
    ):
        engine_kwargs = {"echo": echo, "pool_pre_ping": True}
        # sqlite (tests) uses a static pool without size settings
        if not database_url.startswith("sqlite"):
            if pool_size is not None:
                engine_kwargs["pool_size"] = pool_size
            if max_overflow is not None:
                engine_kwargs["max_overflow"] = max_overflow
            if pool_timeout is not None:
                engine_kwargs["pool_timeout"] = pool_timeout
            if pool_recycle is not None:
                engine_kwargs["pool_recycle"] = pool_recycle

        self.database_url = database_url
        self._engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Keep objects accessible after commit
            autoflush=True,
        )
        logger.info(f"Database session manager created for {self._engine.url.render_as_string(hide_password=True)}")

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session with automatic transaction management.

        Commits when the block finishes, rolls back on any exception. Domain
        exceptions propagate unchanged; SQLAlchemy errors become RepositoryError.

        Yields:
            AsyncSession: Database session

        Raises:
            RepositoryError: If the database rejects the transaction
        """
        session: AsyncSession = self._session_factory()
        try:
            yield session
            await session.commit()
        except exc.SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database error occurred, transaction rolled back: {e}")
            raise RepositoryError(f"Database operation failed: {e}") from e
        except BaseException:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self, metadata: MetaData) -> None:
        """Create all tables of the given metadata (development and tests)."""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Database schema ensured")

    async def health_check(self) -> bool:
        """Run a trivial query to check connectivity."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except exc.SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        await self._engine.dispose()
        logger.info("Database connections closed")
