"""
Database Connection Manager
---------------------------
Manages PostgreSQL database connections with SQLAlchemy async engine.
Provides the transaction scope used by every database service.
"""

from typing import Any, Dict, Optional, AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from loguru import logger

from heron_auth.core.config_manager import settings


class DatabaseManager:
    """
    Manages database connections and operations using SQLAlchemy async engine.

    A single engine (and its connection pool) is shared process-wide. Each
    call to ``get_session`` yields a fresh ``AsyncSession`` whose work forms
    one transaction: it commits when the block exits normally and rolls back
    on any exception, so callers get commit-or-rollback on every exit path.
    """

    _instance = None
    _engine = None
    _sessionmaker = None

    def __new__(cls, *args, **kwargs):
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super(DatabaseManager, cls).__new__(cls)
        return cls._instance

    async def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize SQLAlchemy async engine.

        Args:
            config: Optional configuration override
        """
        if self._engine is not None:
            logger.warning("Database engine already initialized")
            return

        if config is None:
            config = {
                "host": settings.database_host,
                "port": settings.database_port,
                "dbname": settings.database_name,
                "user": settings.database_user,
                "password": settings.database_password,
                "min_connections": settings.database_pool_size,
                "max_connections": settings.database_pool_size
                + settings.database_max_overflow,
            }

        logger.info(
            f"Initializing database connection to {config.get('host')}:{config.get('port')}"
        )

        try:
            db_url = (
                f"postgresql+asyncpg://"
                f"{config['user']}:{config['password']}@"
                f"{config['host']}:{config['port']}/"
                f"{config['dbname']}"
            )

            self._engine = create_async_engine(
                db_url,
                pool_size=config.get("min_connections", 5),
                max_overflow=config.get("max_connections", 10)
                - config.get("min_connections", 5),
                pool_pre_ping=True,
                pool_recycle=3600,
                pool_timeout=30,
                echo=False,
            )

            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            logger.info(
                "SQLAlchemy async engine and sessionmaker initialized successfully"
            )

        except Exception as e:
            logger.error(f"Error initializing SQLAlchemy engine: {e}")
            raise

    async def close(self) -> None:
        """Close SQLAlchemy engine."""
        if self._engine is not None:
            logger.info("Disposing SQLAlchemy engine")
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("SQLAlchemy engine disposed")

    @property
    def is_initialized(self) -> bool:
        return self._sessionmaker is not None

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a SQLAlchemy async session scoped to one transaction.

        Yields:
            AsyncSession: Active SQLAlchemy session with automatic
                         commit on success or rollback on exception

        Raises:
            RuntimeError: If database not initialized

        Example:
            async with db_manager.get_session() as session:
                await refresh_tokens.delete(old_record, session=session)
                await refresh_tokens.save(new_record, session=session)
        """
        if not self._sessionmaker:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self._sessionmaker()
        try:
            yield session
            await session.commit()
            logger.debug("Session committed successfully")
        except Exception as e:
            await session.rollback()
            logger.warning(f"Session rolled back due to error: {e}")
            raise
        finally:
            await session.close()


# Global database manager instance
db_manager = DatabaseManager()
