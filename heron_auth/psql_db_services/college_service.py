"""
College Catalogue Lookups
-------------------------
Read-only access to college programs and their departments.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from heron_auth.models.account_models import CollegeProgram
from heron_auth.psql_db_services.base_service import BaseDatabaseService
from heron_auth.psql_db_services.users_service import program_from_row


class CollegeProgramsService(BaseDatabaseService):
    async def find_program_by_name(
        self, program_name: str, session: Optional[AsyncSession] = None
    ) -> Optional[CollegeProgram]:
        """
        Find an active program by its exact name, with its department.

        Args:
            program_name: Program name as shown to students
            session: Optional session to run inside the caller's transaction

        Returns:
            CollegeProgram or None if no active program has that name
        """
        self.validate_string_not_empty(program_name, "program_name")
        async with self.use_session(session) as active_session:
            sql_query = """
                SELECT p.program_id, p.program_name, p.is_deleted AS program_is_deleted,
                       d.department_id, d.department_name,
                       d.is_deleted AS department_is_deleted
                FROM college_programs p
                LEFT JOIN college_departments d
                    ON d.department_id = p.college_department_id
                WHERE p.program_name = :program_name AND p.is_deleted = FALSE
            """
            result = await active_session.execute(
                text(sql_query), {"program_name": program_name.strip()}
            )
            row = result.mappings().one_or_none()

        if row is None:
            logger.debug(f"College program not found: {program_name}")
            return None
        return program_from_row(row)
