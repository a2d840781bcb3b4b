"""
Refresh Token Store
-------------------
Persistence for issued refresh tokens, one table per role.

The store does no business validation. Mutating operations accept an
optional session so the rotation engine can run delete and insert in one
transaction; without a session each call opens its own short one.
"""

from typing import Any, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from heron_auth.core.database_connection import DatabaseManager
from heron_auth.models.account_models import RefreshTokenRecord, UserRole
from heron_auth.psql_db_services.base_service import BaseDatabaseService
from heron_auth.psql_db_services.schema import REFRESH_TOKEN_TABLES


class RefreshTokenStore(BaseDatabaseService):
    """Refresh-token table for a single role."""

    def __init__(
        self,
        role: Union[UserRole, str],
        database_manager: Optional[DatabaseManager] = None,
    ):
        super().__init__(database_manager)
        self.role = UserRole(role)
        # Table names come from a fixed mapping, never from request input.
        self.table_name = REFRESH_TOKEN_TABLES[self.role.value][0]
        self._service_name = f"RefreshTokenStore[{self.role.value}]"

    @staticmethod
    def _to_record(row: Mapping[str, Any]) -> RefreshTokenRecord:
        return RefreshTokenRecord(
            token_id=row["token_id"],
            user_id=row["user_id"],
            token=row["token"],
            expires_at=row["expires_at"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    async def find_by_user_and_token(
        self, user_id: Union[UUID, str], token: str
    ) -> Optional[RefreshTokenRecord]:
        """
        Find the record matching both user and token value.

        Args:
            user_id: Owning user's id
            token: Raw refresh token string

        Returns:
            RefreshTokenRecord or None
        """
        user_id = self.validate_uuid(user_id, "user_id")
        try:
            async with self.get_session() as session:
                sql_query = f"""
                    SELECT token_id, user_id, token, expires_at, created_at, updated_at
                    FROM {self.table_name}
                    WHERE user_id = :user_id AND token = :token
                """
                result = await session.execute(
                    text(sql_query), {"user_id": user_id, "token": token}
                )
                row = result.mappings().one_or_none()
                return self._to_record(row) if row else None
        except Exception as e:
            logger.error(f"{self._service_name}: lookup failed for user {user_id}: {e}")
            raise

    async def find_by_user(
        self, user_id: Union[UUID, str]
    ) -> Optional[RefreshTokenRecord]:
        """Find the user's current record, if any."""
        user_id = self.validate_uuid(user_id, "user_id")
        async with self.get_session() as session:
            sql_query = f"""
                SELECT token_id, user_id, token, expires_at, created_at, updated_at
                FROM {self.table_name}
                WHERE user_id = :user_id
            """
            result = await session.execute(text(sql_query), {"user_id": user_id})
            row = result.mappings().one_or_none()
            return self._to_record(row) if row else None

    # ========================================================================
    # WRITE OPERATIONS
    # ========================================================================

    async def save(
        self,
        record: RefreshTokenRecord,
        session: Optional[AsyncSession] = None,
    ) -> RefreshTokenRecord:
        """
        Insert a new record.

        Raises:
            sqlalchemy.exc.IntegrityError: If the user already holds a token
                in this table
        """
        async with self.use_session(session) as active_session:
            sql_query = f"""
                INSERT INTO {self.table_name} (
                    token_id, user_id, token, expires_at, created_at, updated_at
                ) VALUES (
                    :token_id, :user_id, :token, :expires_at, :created_at, :updated_at
                )
            """
            await active_session.execute(
                text(sql_query),
                {
                    "token_id": record.token_id,
                    "user_id": record.user_id,
                    "token": record.token,
                    "expires_at": record.expires_at,
                    "created_at": record.created_at,
                    "updated_at": record.updated_at,
                },
            )
        self.log_operation("CREATE", record.user_id)
        return record

    async def delete(
        self,
        record: RefreshTokenRecord,
        session: Optional[AsyncSession] = None,
    ) -> bool:
        """
        Delete the record by token id.

        Returns:
            True if a row was removed, False if it was already gone
        """
        async with self.use_session(session) as active_session:
            sql_query = f"DELETE FROM {self.table_name} WHERE token_id = :token_id"
            result = await active_session.execute(
                text(sql_query), {"token_id": record.token_id}
            )
            deleted = result.rowcount > 0

        if deleted:
            self.log_operation("DELETE", record.user_id)
        else:
            logger.debug(f"{self._service_name}: token {record.token_id} already removed")
        return deleted
