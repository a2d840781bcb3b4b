"""
Tests for the FastAPI authentication dependencies.
"""

import pytest

from heron_auth.auth.dependencies import RoleChecker, get_current_user
from heron_auth.auth.models import AccessTokenClaims
from heron_auth.core.errors import AuthorizationError, TokenVerificationError


@pytest.fixture
def student_pending_claims():
    return AccessTokenClaims(
        sub="550e8400-e29b-41d4-a716-446655440000",
        role="student_pending",
        email="juan.delacruz@umak.edu.ph",
        name="Juan Dela Cruz",
        is_onboarded=False,
    )


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_valid_access_token(self, token_codec, student_pending_claims):
        token = token_codec.issue_access(student_pending_claims)

        claims = await get_current_user(token=token, codec=token_codec)

        assert claims == student_pending_claims

    @pytest.mark.asyncio
    async def test_refresh_token_is_rejected(self, token_codec):
        token = token_codec.issue_refresh("550e8400-e29b-41d4-a716-446655440000")

        with pytest.raises(TokenVerificationError) as exc_info:
            await get_current_user(token=token, codec=token_codec)
        assert exc_info.value.code == "TOKEN_TYPE_MISMATCH"


class TestRoleChecker:
    def test_allowed_role(self, student_pending_claims):
        checker = RoleChecker(["student", "student_pending"])

        assert checker(student_pending_claims) is student_pending_claims

    def test_denied_role(self, student_pending_claims):
        checker = RoleChecker(["admin", "super_admin"])

        with pytest.raises(AuthorizationError) as exc_info:
            checker(student_pending_claims)
        assert exc_info.value.code == "FORBIDDEN"
        assert exc_info.value.status_code == 403

    def test_invalid_role_configuration(self):
        with pytest.raises(ValueError, match="Invalid role 'owner'"):
            RoleChecker(["owner"])
