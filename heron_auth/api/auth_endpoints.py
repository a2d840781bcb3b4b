"""
Authentication Endpoints
------------------------
HTTP surface for sign-in, token rotation, logout and student onboarding.

Handlers only read the request and call the rotation engine; every failure is
an ``AppError`` that the application-level handler turns into the response
envelope.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from loguru import logger

from heron_auth.auth.dependencies import (
    get_bearer_token,
    get_google_verifier,
    get_rotation_engine,
    require_student,
)
from heron_auth.auth.identity_gateway import GoogleIdentityVerifier
from heron_auth.auth.models import AccessTokenClaims
from heron_auth.auth.rotation_engine import RotationEngine
from heron_auth.core.errors import BadRequestError
from heron_auth.models.account_models import UserRole
from heron_auth.models.request_models import (
    LogoutRequest,
    OnboardingRequest,
    PasswordLoginRequest,
    RefreshRequest,
)
from heron_auth.models.response_models import ApiResponse

# ============================================================================
# ROUTER INITIALIZATION
# ============================================================================

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


# ============================================================================
# LOGIN ENDPOINTS
# ============================================================================


@router.post(
    "/student/login",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Sign in a student with a Google ID token",
    description="""
    Send the Google ID token as `Authorization: Bearer <id_token>`.
    First-time students are registered automatically and receive
    `ONBOARDING_REQUIRED` until they pick a college program.
    """,
)
async def student_login(
    id_token: str = Depends(get_bearer_token),
    verifier: GoogleIdentityVerifier = Depends(get_google_verifier),
    engine: RotationEngine = Depends(get_rotation_engine),
):
    identity = await verifier.verify(id_token)
    logger.info("Student login attempt with verified Google identity")
    return await engine.login_student(identity)


@router.post(
    "/counselor/login",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Sign in a counselor with email and password",
)
async def counselor_login(
    request: Optional[PasswordLoginRequest] = None,
    engine: RotationEngine = Depends(get_rotation_engine),
):
    request = request or PasswordLoginRequest()
    return await engine.login_counselor(request.email, request.password)


@router.post(
    "/admin/login",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Sign in an admin with email and password",
)
async def admin_login(
    request: Optional[PasswordLoginRequest] = None,
    engine: RotationEngine = Depends(get_rotation_engine),
):
    request = request or PasswordLoginRequest()
    return await engine.login_admin(request.email, request.password)


# ============================================================================
# ONBOARDING
# ============================================================================


@router.post(
    "/student/onboarding",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Complete student onboarding",
    description="""
    Attach a college program to the signed-in student. Requires an access
    token with role `student_pending` (or `student`, which is rejected as
    already onboarded). Returns a fresh token pair carrying the new program.
    """,
)
async def student_onboarding(
    request: Optional[OnboardingRequest] = None,
    claims: AccessTokenClaims = Depends(require_student),
    engine: RotationEngine = Depends(get_rotation_engine),
):
    if request is None or not request.college_program:
        raise BadRequestError("BODY_PARAM_MISSING", "college_program is required")
    return await engine.complete_onboarding(claims.sub, request.college_program)


# ============================================================================
# SESSION ENDPOINTS (ALL ROLES)
# ============================================================================


@router.post(
    "/{role}/refresh",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Rotate a refresh token",
    description="""
    Exchange the current refresh token for a new access/refresh pair.
    The presented refresh token stops working immediately.
    """,
)
async def refresh_tokens(
    role: UserRole,
    request: Optional[RefreshRequest] = None,
    engine: RotationEngine = Depends(get_rotation_engine),
):
    if request is None:
        raise BadRequestError(
            "MISSING_REFRESH_PAYLOAD", "user_id and refresh_token are required"
        )
    return await engine.refresh(role, request.user_id, request.refresh_token)


@router.post(
    "/{role}/logout",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="End the session owning a refresh token",
)
async def logout(
    role: UserRole,
    request: Optional[LogoutRequest] = None,
    engine: RotationEngine = Depends(get_rotation_engine),
):
    refresh_token = request.refresh_token if request else None
    return await engine.logout(role, refresh_token)
