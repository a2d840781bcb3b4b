"""
PostgreSQL Operations for User Accounts
---------------------------------------
Read and provisioning operations for the three role tables:
- Students (Google sign-in, lazily provisioned, onboarding state)
- Counselors (local password, optional department)
- Admins (local password, super-admin flag)

Rows are mapped into the account records from ``heron_auth.models``.
Soft-deleted accounts are never returned.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from email_validator import validate_email, EmailNotValidError

from heron_auth.core.database_connection import DatabaseManager
from heron_auth.models.account_models import (
    AdminAccount,
    CollegeDepartment,
    CollegeProgram,
    CounselorAccount,
    StudentAccount,
)
from heron_auth.psql_db_services.base_service import BaseDatabaseService


def department_from_row(row: Mapping[str, Any]) -> Optional[CollegeDepartment]:
    if row.get("department_id") is None:
        return None
    return CollegeDepartment(
        department_id=row["department_id"],
        department_name=row["department_name"],
        is_deleted=row.get("department_is_deleted") or False,
    )


def program_from_row(row: Mapping[str, Any]) -> Optional[CollegeProgram]:
    if row.get("program_id") is None:
        return None
    return CollegeProgram(
        program_id=row["program_id"],
        program_name=row["program_name"],
        college_department=department_from_row(row),
        is_deleted=row.get("program_is_deleted") or False,
    )


class StudentsService(BaseDatabaseService):
    """Student accounts with their program and department."""

    _SELECT_STUDENT = """
        SELECT s.user_id, s.email, s.user_name, s.finished_onboarding,
               s.is_deleted, s.created_at, s.updated_at,
               p.program_id, p.program_name, p.is_deleted AS program_is_deleted,
               d.department_id, d.department_name,
               d.is_deleted AS department_is_deleted
        FROM students s
        LEFT JOIN college_programs p ON p.program_id = s.college_program_id
        LEFT JOIN college_departments d ON d.department_id = p.college_department_id
    """

    def __init__(self, database_manager: Optional[DatabaseManager] = None):
        super().__init__(database_manager)

    def normalize_email(self, email_address: str) -> str:
        """
        Validate and normalize an email address.

        Raises:
            ValueError: If the email format is invalid
        """
        self.validate_string_not_empty(email_address, "email")
        try:
            validated = validate_email(email_address.strip(), check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email: {str(e)}")
        return validated.normalized.lower()

    @staticmethod
    def _to_account(row: Mapping[str, Any]) -> StudentAccount:
        return StudentAccount(
            user_id=row["user_id"],
            email=row["email"],
            user_name=row["user_name"],
            finished_onboarding=row["finished_onboarding"],
            is_deleted=row["is_deleted"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            college_program=program_from_row(row),
        )

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    async def find_by_email(self, email: str) -> Optional[StudentAccount]:
        """Look up an active student by email (case-insensitive)."""
        try:
            async with self.get_session() as session:
                sql_query = (
                    self._SELECT_STUDENT
                    + " WHERE s.email = :email AND s.is_deleted = FALSE"
                )
                result = await session.execute(
                    text(sql_query), {"email": email.strip().lower()}
                )
                row = result.mappings().one_or_none()
                return self._to_account(row) if row else None
        except Exception as e:
            logger.error(f"Error fetching student by email: {e}")
            raise

    async def find_by_id(
        self,
        user_id: Union[UUID, str],
        session: Optional[AsyncSession] = None,
    ) -> Optional[StudentAccount]:
        """Look up an active student by id, joining program and department."""
        user_id = self.validate_uuid(user_id, "user_id")
        try:
            async with self.use_session(session) as active_session:
                sql_query = (
                    self._SELECT_STUDENT
                    + " WHERE s.user_id = :user_id AND s.is_deleted = FALSE"
                )
                result = await active_session.execute(
                    text(sql_query), {"user_id": user_id}
                )
                row = result.mappings().one_or_none()
                return self._to_account(row) if row else None
        except Exception as e:
            logger.error(f"Error fetching student {user_id}: {e}")
            raise

    # ========================================================================
    # WRITE OPERATIONS
    # ========================================================================

    async def find_or_create(
        self, email: str, user_name: str
    ) -> Optional[StudentAccount]:
        """
        Return the student for ``email``, provisioning a new pending student on
        first sign-in. Returns None if the email belongs to a soft-deleted
        student.

        Two concurrent first sign-ins for the same email both end up with the
        same row; the losing INSERT is a no-op.
        """
        email = self.normalize_email(email)

        existing = await self.find_by_email(email)
        if existing is not None:
            return existing

        now = datetime.now(timezone.utc)
        try:
            async with self.get_session() as session:
                sql_query = """
                    INSERT INTO students (
                        user_id, email, user_name, finished_onboarding,
                        is_deleted, created_at, updated_at
                    ) VALUES (
                        :user_id, :email, :user_name, FALSE,
                        FALSE, :created_at, :updated_at
                    )
                    ON CONFLICT (email) DO NOTHING
                """
                await session.execute(
                    text(sql_query),
                    {
                        "user_id": uuid.uuid4(),
                        "email": email,
                        "user_name": user_name,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
        except Exception as e:
            self.log_operation("CREATE", email, success=False, additional_context=str(e))
            raise

        created = await self.find_by_email(email)
        if created is None:
            logger.warning(f"Sign-in for soft-deleted student account {email}")
            return None
        self.log_operation("CREATE", created.user_id, additional_context="student provisioned")
        return created

    async def mark_onboarded(
        self,
        user_id: Union[UUID, str],
        program_id: Union[UUID, str],
        session: Optional[AsyncSession] = None,
    ) -> bool:
        """
        Attach a program and flip ``finished_onboarding``.

        Only updates a student who has not onboarded yet.

        Returns:
            True if the row was updated, False if the student was already
            onboarded (or no longer exists)
        """
        user_id = self.validate_uuid(user_id, "user_id")
        program_id = self.validate_uuid(program_id, "program_id")
        async with self.use_session(session) as active_session:
            sql_query = """
                UPDATE students
                SET college_program_id = :program_id,
                    finished_onboarding = TRUE,
                    updated_at = :updated_at
                WHERE user_id = :user_id
                  AND finished_onboarding = FALSE
                  AND is_deleted = FALSE
            """
            result = await active_session.execute(
                text(sql_query),
                {
                    "user_id": user_id,
                    "program_id": program_id,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            updated = result.rowcount > 0
        self.log_operation("UPDATE", user_id, success=updated, additional_context="onboarding")
        return updated


class CounselorsService(BaseDatabaseService):
    """Counselor accounts with their department."""

    _SELECT_COUNSELOR = """
        SELECT c.user_id, c.email, c.user_name, c.password_hash,
               c.is_deleted, c.created_at, c.updated_at,
               d.department_id, d.department_name,
               d.is_deleted AS department_is_deleted
        FROM counselors c
        LEFT JOIN college_departments d ON d.department_id = c.college_department_id
    """

    @staticmethod
    def _to_account(row: Mapping[str, Any]) -> CounselorAccount:
        return CounselorAccount(
            user_id=row["user_id"],
            email=row["email"],
            user_name=row["user_name"],
            password_hash=row["password_hash"],
            is_deleted=row["is_deleted"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            college_department=department_from_row(row),
        )

    async def find_by_email(self, email: str) -> Optional[CounselorAccount]:
        async with self.get_session() as session:
            result = await session.execute(
                text(
                    self._SELECT_COUNSELOR
                    + " WHERE c.email = :email AND c.is_deleted = FALSE"
                ),
                {"email": email.strip().lower()},
            )
            row = result.mappings().one_or_none()
            return self._to_account(row) if row else None

    async def find_by_id(
        self,
        user_id: Union[UUID, str],
        session: Optional[AsyncSession] = None,
    ) -> Optional[CounselorAccount]:
        user_id = self.validate_uuid(user_id, "user_id")
        async with self.use_session(session) as active_session:
            result = await active_session.execute(
                text(
                    self._SELECT_COUNSELOR
                    + " WHERE c.user_id = :user_id AND c.is_deleted = FALSE"
                ),
                {"user_id": user_id},
            )
            row = result.mappings().one_or_none()
            return self._to_account(row) if row else None


class AdminsService(BaseDatabaseService):
    """Admin and super-admin accounts."""

    _SELECT_ADMIN = """
        SELECT user_id, email, user_name, password_hash, is_super_admin,
               is_deleted, created_at, updated_at
        FROM admins
    """

    @staticmethod
    def _to_account(row: Mapping[str, Any]) -> AdminAccount:
        return AdminAccount(
            user_id=row["user_id"],
            email=row["email"],
            user_name=row["user_name"],
            password_hash=row["password_hash"],
            is_super_admin=row["is_super_admin"],
            is_deleted=row["is_deleted"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    async def find_by_email(self, email: str) -> Optional[AdminAccount]:
        async with self.get_session() as session:
            result = await session.execute(
                text(self._SELECT_ADMIN + " WHERE email = :email AND is_deleted = FALSE"),
                {"email": email.strip().lower()},
            )
            row = result.mappings().one_or_none()
            return self._to_account(row) if row else None

    async def find_by_id(
        self,
        user_id: Union[UUID, str],
        session: Optional[AsyncSession] = None,
    ) -> Optional[AdminAccount]:
        user_id = self.validate_uuid(user_id, "user_id")
        async with self.use_session(session) as active_session:
            result = await active_session.execute(
                text(self._SELECT_ADMIN + " WHERE user_id = :user_id AND is_deleted = FALSE"),
                {"user_id": user_id},
            )
            row = result.mappings().one_or_none()
            return self._to_account(row) if row else None
