"""
Request Models
--------------
Pydantic models for API request bodies.

Fields are optional at the schema level so that missing values surface as
the service's own error codes instead of a generic validation failure.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PasswordLoginRequest(BaseModel):
    """Email/password credentials for counselor and admin login."""

    email: Optional[str] = Field(default=None, description="Account email")
    password: Optional[str] = Field(default=None, description="Plain text password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    class Config:
        json_schema_extra = {
            "example": {"email": "counselor@umak.edu.ph", "password": "SecurePass123"}
        }


class RefreshRequest(BaseModel):
    """Rotation request: the owning user id and the current refresh token."""

    user_id: Optional[str] = Field(default=None, description="Owning user id (UUID)")
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "550e8400-e29b-41d4-a716-446655440000",
                "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            }
        }


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")


class OnboardingRequest(BaseModel):
    """Student profile completion."""

    college_program: Optional[str] = Field(
        default=None, description="Exact name of an existing college program"
    )

    @field_validator("college_program")
    @classmethod
    def strip_program(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    class Config:
        json_schema_extra = {
            "example": {"college_program": "Bachelor of Science in Computer Science"}
        }
