"""
Response Models
--------------
Pydantic models for API response validation.
Every core operation answers with the same envelope.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TokenPairData(BaseModel):
    access_token: str
    refresh_token: str
    is_onboarded: Optional[bool] = None


class ApiResponse(BaseModel):
    """Uniform envelope: ``{success, code, message, data?}``."""

    success: bool
    code: str
    message: str
    data: Optional[TokenPairData] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "code": "LOGIN_SUCCESS",
                "message": "Student login successful",
                "data": {
                    "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "is_onboarded": True,
                },
            }
        }


class HealthStatus(BaseModel):
    status: str = Field(..., description="Service status")
    timestamp: datetime
    version: str
