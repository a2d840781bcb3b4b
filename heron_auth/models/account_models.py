"""
Account Models
--------------
Pydantic records mapped from database rows.

User accounts share a base record. Each role has its own variant with a
fixed ``role`` literal and the role-specific fields.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Roles that own their own user and refresh-token tables."""

    STUDENT = "student"
    COUNSELOR = "counselor"
    ADMIN = "admin"


# ============================================================================
# COLLEGE CATALOGUE
# ============================================================================


class CollegeDepartment(BaseModel):
    department_id: UUID
    department_name: str
    is_deleted: bool = False


class CollegeProgram(BaseModel):
    program_id: UUID
    program_name: str
    college_department: Optional[CollegeDepartment] = None
    is_deleted: bool = False


# ============================================================================
# USER ACCOUNTS
# ============================================================================


class BaseAccount(BaseModel):
    """Fields shared by every role."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    email: str
    user_name: str
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudentAccount(BaseAccount):
    role: Literal[UserRole.STUDENT] = UserRole.STUDENT
    finished_onboarding: bool = False
    college_program: Optional[CollegeProgram] = None


class CounselorAccount(BaseAccount):
    role: Literal[UserRole.COUNSELOR] = UserRole.COUNSELOR
    password_hash: str = Field(..., repr=False)
    college_department: Optional[CollegeDepartment] = None


class AdminAccount(BaseAccount):
    role: Literal[UserRole.ADMIN] = UserRole.ADMIN
    password_hash: str = Field(..., repr=False)
    is_super_admin: bool = False


# ============================================================================
# REFRESH TOKENS
# ============================================================================


class RefreshTokenRecord(BaseModel):
    """One persisted refresh token. At most one exists per user per role."""

    token_id: UUID
    user_id: UUID
    token: str = Field(..., repr=False)
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now
