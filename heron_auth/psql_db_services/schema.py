"""
Database Schema
---------------
Idempotent DDL for every table the service owns.

Each role has its own refresh-token table. ``user_id`` is UNIQUE there, so a
user can hold at most one stored refresh token per role.
"""

from typing import List, Optional

from sqlalchemy import text
from loguru import logger

from heron_auth.core.database_connection import DatabaseManager

REFRESH_TOKEN_TABLES = {
    "student": ("student_refresh_tokens", "students"),
    "counselor": ("counselor_refresh_tokens", "counselors"),
    "admin": ("admin_refresh_tokens", "admins"),
}


def _refresh_token_table_ddl(table_name: str, owner_table: str) -> str:
    return f"""
        CREATE TABLE IF NOT EXISTS {table_name} (
            token_id UUID PRIMARY KEY,
            user_id UUID NOT NULL UNIQUE
                REFERENCES {owner_table}(user_id) ON DELETE CASCADE,
            token TEXT NOT NULL UNIQUE,
            expires_at TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """


SCHEMA_STATEMENTS: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS college_departments (
        department_id UUID PRIMARY KEY,
        department_name VARCHAR(255) NOT NULL,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS college_programs (
        program_id UUID PRIMARY KEY,
        program_name VARCHAR(255) NOT NULL UNIQUE,
        college_department_id UUID
            REFERENCES college_departments(department_id) ON DELETE CASCADE,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS students (
        user_id UUID PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        user_name VARCHAR(255) NOT NULL,
        college_program_id UUID
            REFERENCES college_programs(program_id) ON DELETE SET NULL,
        finished_onboarding BOOLEAN NOT NULL DEFAULT FALSE,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS counselors (
        user_id UUID PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        user_name VARCHAR(255) NOT NULL,
        password_hash VARCHAR(255) NOT NULL,
        college_department_id UUID
            REFERENCES college_departments(department_id) ON DELETE SET NULL,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS admins (
        user_id UUID PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        user_name VARCHAR(255) NOT NULL,
        password_hash VARCHAR(255) NOT NULL,
        is_super_admin BOOLEAN NOT NULL DEFAULT FALSE,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
] + [
    _refresh_token_table_ddl(table_name, owner_table)
    for table_name, owner_table in REFRESH_TOKEN_TABLES.values()
]


async def create_schema(database_manager: Optional[DatabaseManager] = None) -> None:
    """Create any missing tables in one transaction."""
    database_manager = database_manager or DatabaseManager()
    async with database_manager.get_session() as session:
        for statement in SCHEMA_STATEMENTS:
            await session.execute(text(statement))
    logger.info(f"Database schema verified ({len(SCHEMA_STATEMENTS)} tables)")
