"""
FastAPI Authentication Dependencies
-----------------------------------
Dependencies that hand the shared auth components to route handlers and
authenticate access-token bearers.

The codec, rotation engine and Google verifier are built once in the
application lifespan and stored on ``app.state``.
"""

from typing import List, Optional

from fastapi import Depends, Header, Request
from loguru import logger

from heron_auth.auth.identity_gateway import GoogleIdentityVerifier
from heron_auth.auth.models import AccessTokenClaims
from heron_auth.auth.rotation_engine import RotationEngine
from heron_auth.auth.token_codec import ACCESS_TOKEN_TYPE, TokenCodec, extract_bearer
from heron_auth.core.errors import AuthorizationError


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_rotation_engine(request: Request) -> RotationEngine:
    return request.app.state.rotation_engine


def get_google_verifier(request: Request) -> GoogleIdentityVerifier:
    return request.app.state.google_verifier


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Raw token from the ``Authorization: Bearer`` header."""
    return extract_bearer(authorization)


async def get_current_user(
    token: str = Depends(get_bearer_token),
    codec: TokenCodec = Depends(get_token_codec),
) -> AccessTokenClaims:
    """
    Verify an access token and return its claims.

    No database query is made; the token signature is the proof.

    Raises:
        AuthenticationError: Missing header
        BadRequestError: Header is not a bearer credential
        TokenVerificationError: Token fails verification or is not an access token
    """
    payload = codec.verify(token, expected_type=ACCESS_TOKEN_TYPE)
    claims = AccessTokenClaims(
        sub=payload["sub"],
        role=payload.get("role", ""),
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        is_onboarded=payload.get("is_onboarded"),
        college_program=payload.get("college_program"),
        college_department=payload.get("college_department"),
    )
    logger.debug(f"Access token validated for {claims.sub} (role={claims.role})")
    return claims


class RoleChecker:
    """
    Dependency that only lets listed access-token roles through.

    Usage:
        require_student = RoleChecker(["student", "student_pending"])
        @router.post("/onboarding")
        async def onboard(user: AccessTokenClaims = Depends(require_student)): ...
    """

    VALID_ROLES = ["student", "student_pending", "counselor", "admin", "super_admin"]

    def __init__(self, allowed_roles: List[str]):
        for role in allowed_roles:
            if role not in self.VALID_ROLES:
                raise ValueError(
                    f"Invalid role '{role}'. Must be one of: {', '.join(self.VALID_ROLES)}"
                )
        self.allowed_roles = allowed_roles

    def __call__(
        self, claims: AccessTokenClaims = Depends(get_current_user)
    ) -> AccessTokenClaims:
        if claims.role not in self.allowed_roles:
            logger.warning(f"Access denied for {claims.sub} with role {claims.role}")
            raise AuthorizationError(
                "FORBIDDEN",
                f"Insufficient permissions. Required roles: {', '.join(self.allowed_roles)}",
            )
        return claims


require_student = RoleChecker(["student", "student_pending"])
