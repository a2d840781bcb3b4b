"""
JWT Authentication Models
-------------------------
Pydantic models for token claims and verified identities.
"""

from typing import Optional
from pydantic import BaseModel, Field


class AccessTokenClaims(BaseModel):
    """
    Custom claims embedded in an access token.

    Standard claims (iss, aud, iat, exp, jti, type) are added by the codec.
    ``college_program`` and ``college_department`` are always serialized,
    as null when absent. ``is_onboarded`` is only meaningful for students.
    """

    sub: str = Field(..., description="User id")
    role: str = Field(
        ...,
        description="student, student_pending, counselor, admin or super_admin",
    )
    email: str
    name: str
    is_onboarded: Optional[bool] = None
    college_program: Optional[str] = None
    college_department: Optional[str] = None

    def to_jwt_claims(self) -> dict:
        claims = self.model_dump()
        if claims["is_onboarded"] is None:
            del claims["is_onboarded"]
        return claims

    class Config:
        json_schema_extra = {
            "example": {
                "sub": "550e8400-e29b-41d4-a716-446655440000",
                "role": "student",
                "email": "juan.delacruz@umak.edu.ph",
                "name": "Juan Dela Cruz",
                "is_onboarded": True,
                "college_program": "Bachelor of Science in Computer Science",
                "college_department": "College of Computing and Information Sciences",
            }
        }


class VerifiedIdentity(BaseModel):
    """Identity asserted by an external provider after verification."""

    email: str
    name: str
    subject: Optional[str] = None
