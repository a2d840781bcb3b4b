"""
Base Database Service
--------------------
Base class for all database services with shared session management,
error handling and validation helpers.

This base class provides:
- SQLAlchemy session management
- Reuse of a caller-supplied transactional session
- Consistent error handling and logging
- Validation helpers
"""

from typing import Any, AsyncGenerator, Optional
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from heron_auth.core.database_connection import DatabaseManager


class BaseDatabaseService:
    """
    Base class for all database service classes.

    Provides shared functionality for database operations including:
    - SQLAlchemy session management
    - Transaction handling with commit/rollback
    - Error handling and logging
    - Common validation utilities
    """

    def __init__(self, database_manager: Optional[DatabaseManager] = None):
        """
        Initialize the database service with a database manager.

        Args:
            database_manager: Optional DatabaseManager instance. If not provided,
                            uses the singleton instance for connection pooling.
        """
        self.database_manager = database_manager or DatabaseManager()
        self._service_name = self.__class__.__name__

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a SQLAlchemy session with automatic commit/rollback.

        Yields:
            AsyncSession: SQLAlchemy session
        """
        async with self.database_manager.get_session() as session:
            yield session

    @asynccontextmanager
    async def use_session(
        self, session: Optional[AsyncSession] = None
    ) -> AsyncGenerator[AsyncSession, None]:
        """
        Run on the caller's transaction when one is given, otherwise open a
        short transaction of our own.

        Example:
            async with self.use_session(session) as active_session:
                await active_session.execute(text("DELETE ..."), params)
        """
        if session is not None:
            yield session
        else:
            async with self.get_session() as own_session:
                yield own_session

    # ========================================================================
    # VALIDATION UTILITIES
    # ========================================================================

    def validate_uuid(self, uuid_value: Any, parameter_name: str = "UUID") -> UUID:
        """
        Validate and coerce a UUID value.

        Args:
            uuid_value: UUID instance or UUID string
            parameter_name: Name of the parameter for error messages

        Returns:
            UUID instance

        Raises:
            ValueError: If the value is None or not a valid UUID
        """
        if uuid_value is None:
            raise ValueError(f"{parameter_name} cannot be None")
        if isinstance(uuid_value, UUID):
            return uuid_value
        try:
            return UUID(str(uuid_value))
        except ValueError:
            raise ValueError(f"{parameter_name} must be a valid UUID string")

    def validate_string_not_empty(
        self, string_value: str, parameter_name: str = "string"
    ) -> None:
        """
        Validate that a string is not None or empty.

        Raises:
            ValueError: If string is None or empty
        """
        if not string_value or not isinstance(string_value, str):
            raise ValueError(f"{parameter_name} must be a non-empty string")
        if not string_value.strip():
            raise ValueError(f"{parameter_name} cannot be only whitespace")

    def log_operation(
        self,
        operation_type: str,
        entity_identifier: Any,
        success: bool = True,
        additional_context: Optional[str] = None,
    ) -> None:
        """
        Log database operations for monitoring and debugging.

        Args:
            operation_type: Type of operation (e.g., "CREATE", "UPDATE", "DELETE")
            entity_identifier: Identifier of the entity being operated on
            success: Whether the operation was successful
            additional_context: Optional additional context information
        """
        log_level = "info" if success else "error"
        status = "succeeded" if success else "failed"

        message = (
            f"{self._service_name}: {operation_type} operation {status} "
            f"for entity: {entity_identifier}"
        )

        if additional_context:
            message += f" - {additional_context}"

        getattr(logger, log_level)(message)
