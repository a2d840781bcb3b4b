"""
Models Package
--------------
Pydantic models for database records and API payloads.

This package provides validated data models for:
- User accounts per role (students, counselors, admins)
- College programs and departments
- Persisted refresh tokens
- API request/response envelopes
"""

from heron_auth.models.account_models import (
    UserRole,
    CollegeDepartment,
    CollegeProgram,
    BaseAccount,
    StudentAccount,
    CounselorAccount,
    AdminAccount,
    RefreshTokenRecord,
)
from heron_auth.models.request_models import (
    PasswordLoginRequest,
    RefreshRequest,
    LogoutRequest,
    OnboardingRequest,
)
from heron_auth.models.response_models import ApiResponse, TokenPairData, HealthStatus

__all__ = [
    "UserRole",
    "CollegeDepartment",
    "CollegeProgram",
    "BaseAccount",
    "StudentAccount",
    "CounselorAccount",
    "AdminAccount",
    "RefreshTokenRecord",
    "PasswordLoginRequest",
    "RefreshRequest",
    "LogoutRequest",
    "OnboardingRequest",
    "ApiResponse",
    "TokenPairData",
    "HealthStatus",
]
