"""
PostgreSQL services: user accounts, college catalogue and refresh tokens.
"""

from heron_auth.psql_db_services.base_service import BaseDatabaseService
from heron_auth.psql_db_services.college_service import CollegeProgramsService
from heron_auth.psql_db_services.refresh_tokens_service import RefreshTokenStore
from heron_auth.psql_db_services.schema import create_schema
from heron_auth.psql_db_services.users_service import (
    AdminsService,
    CounselorsService,
    StudentsService,
)

__all__ = [
    "BaseDatabaseService",
    "CollegeProgramsService",
    "RefreshTokenStore",
    "create_schema",
    "AdminsService",
    "CounselorsService",
    "StudentsService",
]
