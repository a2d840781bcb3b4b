"""
Rotation Engine
---------------
Login, logout, refresh-token rotation and onboarding completion for all roles.

Session model:
- A user holds at most one stored refresh token per role. Login replaces it.
- Refresh rotates: the presented token is deleted and a new one stored in the
  same transaction. A token that has already been rotated away is rejected.
- Expired or orphaned refresh tokens are deleted when they are presented.
- Access-token claims are rebuilt from the database on every issuance.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from loguru import logger

from heron_auth.auth.claims_builder import build_access_claims
from heron_auth.auth.identity_gateway import verify_password_credentials
from heron_auth.auth.models import VerifiedIdentity
from heron_auth.auth.token_codec import REFRESH_TOKEN_TYPE, TokenCodec
from heron_auth.core.database_connection import DatabaseManager
from heron_auth.core.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from heron_auth.models.account_models import (
    RefreshTokenRecord,
    StudentAccount,
    UserRole,
)
from heron_auth.models.response_models import ApiResponse, TokenPairData
from heron_auth.psql_db_services.college_service import CollegeProgramsService
from heron_auth.psql_db_services.refresh_tokens_service import RefreshTokenStore
from heron_auth.psql_db_services.users_service import (
    AdminsService,
    CounselorsService,
    StudentsService,
)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def _session_conflict() -> ConflictError:
    return ConflictError(
        "SESSION_CONFLICT",
        "Another sign-in for this account is in progress. Please try again.",
    )


class RotationEngine:
    """
    Orchestrates token issuance and session persistence.

    The engine is stateless between calls; everything it needs is injected:
    the codec, the database manager used for multi-statement transactions,
    the per-role refresh-token stores and the account services.
    """

    def __init__(
        self,
        codec: TokenCodec,
        database_manager: Optional[DatabaseManager] = None,
        refresh_stores: Optional[Dict[UserRole, RefreshTokenStore]] = None,
        students: Optional[StudentsService] = None,
        counselors: Optional[CounselorsService] = None,
        admins: Optional[AdminsService] = None,
        programs: Optional[CollegeProgramsService] = None,
    ):
        self.codec = codec
        self.database_manager = database_manager or DatabaseManager()
        self.refresh_stores = refresh_stores or {
            role: RefreshTokenStore(role, self.database_manager) for role in UserRole
        }
        self.students = students or StudentsService(self.database_manager)
        self.counselors = counselors or CounselorsService(self.database_manager)
        self.admins = admins or AdminsService(self.database_manager)
        self.programs = programs or CollegeProgramsService(self.database_manager)
        self._accounts = {
            UserRole.STUDENT: self.students,
            UserRole.COUNSELOR: self.counselors,
            UserRole.ADMIN: self.admins,
        }

    # ========================================================================
    # TOKEN ISSUANCE
    # ========================================================================

    def _issue_pair(self, account, now: datetime):
        """Sign a new access/refresh pair and build the record to persist."""
        claims = build_access_claims(account)
        access_token = self.codec.issue_access(claims, now)
        refresh_token = self.codec.issue_refresh(str(account.user_id), now)
        record = RefreshTokenRecord(
            token_id=uuid.uuid4(),
            user_id=account.user_id,
            token=refresh_token,
            expires_at=self.codec.refresh_expires_at(now),
            created_at=now,
            updated_at=now,
        )
        data = TokenPairData(
            access_token=access_token,
            refresh_token=refresh_token,
            is_onboarded=(
                account.finished_onboarding
                if isinstance(account, StudentAccount)
                else None
            ),
        )
        return data, record

    async def _start_session(self, account) -> TokenPairData:
        """Replace the account's stored refresh token with a fresh pair."""
        store = self.refresh_stores[account.role]
        now = datetime.now(timezone.utc)
        data, record = self._issue_pair(account, now)
        existing = await store.find_by_user(account.user_id)

        try:
            async with self.database_manager.get_session() as session:
                if existing is not None:
                    await store.delete(existing, session)
                await store.save(record, session)
        except IntegrityError as e:
            logger.warning(
                f"Concurrent sign-in detected for {account.role.value} {account.user_id}: {e.orig}"
            )
            raise _session_conflict() from e

        return data

    # ========================================================================
    # LOGIN
    # ========================================================================

    async def login_student(self, identity: VerifiedIdentity) -> ApiResponse:
        """
        Sign in a student whose Google identity has been verified.

        First-time students are provisioned with onboarding pending.
        """
        student = await self.students.find_or_create(identity.email, identity.name)
        if student is None:
            raise NotFoundError("USER_NOT_FOUND", "User not found")

        data = await self._start_session(student)
        logger.info(f"Student {student.user_id} signed in (onboarded={student.finished_onboarding})")

        if student.finished_onboarding:
            return ApiResponse(
                success=True,
                code="LOGIN_SUCCESS",
                message="Student login successful",
                data=data,
            )
        return ApiResponse(
            success=True,
            code="ONBOARDING_REQUIRED",
            message="Login successful. Please complete onboarding.",
            data=data,
        )

    async def _login_with_password(
        self, role: UserRole, email: Optional[str], password: Optional[str]
    ) -> ApiResponse:
        if not email or not password:
            raise BadRequestError("MISSING_CREDENTIALS", "Email and password are required")

        account = await self._accounts[role].find_by_email(email)
        stored_hash = account.password_hash if account is not None else None
        # Same error and one bcrypt check for unknown, deleted and wrong-password accounts.
        if not verify_password_credentials(password, stored_hash) or account is None:
            logger.info(f"Failed {role.value} login attempt")
            raise AuthenticationError("INVALID_CREDENTIALS", INVALID_CREDENTIALS_MESSAGE)

        data = await self._start_session(account)
        logger.info(f"{role.value.capitalize()} {account.user_id} signed in")
        return ApiResponse(
            success=True,
            code="LOGIN_SUCCESS",
            message=f"{role.value.capitalize()} login successful",
            data=data,
        )

    async def login_counselor(self, email: Optional[str], password: Optional[str]) -> ApiResponse:
        return await self._login_with_password(UserRole.COUNSELOR, email, password)

    async def login_admin(self, email: Optional[str], password: Optional[str]) -> ApiResponse:
        return await self._login_with_password(UserRole.ADMIN, email, password)

    # ========================================================================
    # LOGOUT
    # ========================================================================

    async def logout(self, role: Union[UserRole, str], refresh_token: Optional[str]) -> ApiResponse:
        """
        End the session that owns ``refresh_token``.

        Raises:
            BadRequestError: MISSING_REFRESH_TOKEN
            TokenVerificationError: Token fails verification
            NotFoundError: REFRESH_TOKEN_NOT_FOUND when nothing is stored
        """
        role = UserRole(role)
        if not refresh_token:
            raise BadRequestError("MISSING_REFRESH_TOKEN", "Refresh token is required")

        claims = self.codec.verify(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        store = self.refresh_stores[role]

        try:
            subject = UUID(str(claims.get("sub")))
        except ValueError:
            raise NotFoundError("REFRESH_TOKEN_NOT_FOUND", "Refresh token not found")

        record = await store.find_by_user_and_token(subject, refresh_token)
        if record is None:
            raise NotFoundError("REFRESH_TOKEN_NOT_FOUND", "Refresh token not found")

        await store.delete(record)
        logger.info(f"{role.value.capitalize()} {subject} logged out")
        return ApiResponse(success=True, code="LOGOUT_SUCCESS", message="Logout successful")

    # ========================================================================
    # REFRESH
    # ========================================================================

    async def refresh(
        self,
        role: Union[UserRole, str],
        user_id: Optional[Union[UUID, str]],
        refresh_token: Optional[str],
    ) -> ApiResponse:
        """
        Rotate a refresh token and issue a new access token.

        Args:
            role: Role whose token table holds the token
            user_id: Owning user id
            refresh_token: Currently stored refresh token

        Returns:
            ApiResponse with the new token pair

        Raises:
            BadRequestError: MISSING_REFRESH_PAYLOAD or INVALID_USER_ID
            AuthenticationError: INVALID_REFRESH_TOKEN or EXPIRED_REFRESH_TOKEN
            NotFoundError: USER_NOT_FOUND
            ConflictError: SESSION_CONFLICT
        """
        role = UserRole(role)
        if not user_id or not refresh_token:
            raise BadRequestError(
                "MISSING_REFRESH_PAYLOAD", "user_id and refresh_token are required"
            )
        try:
            user_id = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            raise BadRequestError("INVALID_USER_ID", "user_id must be a valid UUID")

        store = self.refresh_stores[role]
        record = await store.find_by_user_and_token(user_id, refresh_token)
        if record is None:
            raise AuthenticationError("INVALID_REFRESH_TOKEN", "Invalid refresh token")

        now = datetime.now(timezone.utc)
        if record.is_expired(now):
            await store.delete(record)
            logger.info(f"Expired refresh token removed for {role.value} {user_id}")
            raise AuthenticationError("EXPIRED_REFRESH_TOKEN", "Refresh token has expired")

        account = await self._accounts[role].find_by_id(user_id)
        if account is None:
            await store.delete(record)
            logger.warning(f"Orphaned refresh token removed for {role.value} {user_id}")
            raise NotFoundError("USER_NOT_FOUND", "User not found")

        data, new_record = self._issue_pair(account, now)
        try:
            async with self.database_manager.get_session() as session:
                if not await store.delete(record, session):
                    logger.info(f"Refresh token for {role.value} {user_id} was already rotated")
                    raise AuthenticationError("INVALID_REFRESH_TOKEN", "Invalid refresh token")
                await store.save(new_record, session)
        except IntegrityError as e:
            logger.warning(f"Concurrent rotation for {role.value} {user_id}: {e.orig}")
            raise _session_conflict() from e

        logger.info(f"Refresh token rotated for {role.value} {user_id}")
        if isinstance(account, StudentAccount) and not account.finished_onboarding:
            return ApiResponse(
                success=True,
                code="ACCESS_TOKEN_REFRESH_SUCCESS_ONBOARDING_REQUIRED",
                message="Access token refreshed. Please complete onboarding.",
                data=data,
            )
        return ApiResponse(
            success=True,
            code="ACCESS_TOKEN_REFRESH_SUCCESS",
            message="Access token refreshed successfully",
            data=data,
        )

    # ========================================================================
    # ONBOARDING
    # ========================================================================

    async def complete_onboarding(
        self, student_id: Union[UUID, str], program_name: Optional[str]
    ) -> ApiResponse:
        """
        Attach a college program to a pending student and reissue tokens.

        The program update, the old token deletion and the new token insert
        commit together.

        Raises:
            BadRequestError: BODY_PARAM_MISSING
            NotFoundError: USER_NOT_FOUND or PROGRAM_NOT_FOUND
            ConflictError: USER_ALREADY_ONBOARDED or SESSION_CONFLICT
        """
        if not program_name:
            raise BadRequestError("BODY_PARAM_MISSING", "college_program is required")

        student = await self.students.find_by_id(student_id)
        if student is None:
            raise NotFoundError("USER_NOT_FOUND", "User not found")
        if student.finished_onboarding:
            raise ConflictError("USER_ALREADY_ONBOARDED", "User is already onboarded")

        program = await self.programs.find_program_by_name(program_name)
        if program is None:
            raise NotFoundError("PROGRAM_NOT_FOUND", f"College program '{program_name}' not found")

        onboarded = student.model_copy(
            update={"finished_onboarding": True, "college_program": program}
        )
        now = datetime.now(timezone.utc)
        data, record = self._issue_pair(onboarded, now)
        store = self.refresh_stores[UserRole.STUDENT]
        existing = await store.find_by_user(student.user_id)

        try:
            async with self.database_manager.get_session() as session:
                if not await self.students.mark_onboarded(
                    student.user_id, program.program_id, session
                ):
                    raise ConflictError("USER_ALREADY_ONBOARDED", "User is already onboarded")
                if existing is not None:
                    await store.delete(existing, session)
                await store.save(record, session)
        except IntegrityError as e:
            logger.warning(f"Concurrent session write during onboarding of {student.user_id}: {e.orig}")
            raise _session_conflict() from e

        logger.info(f"Student {student.user_id} onboarded to {program.program_name}")
        return ApiResponse(
            success=True,
            code="USER_SUCCESSFULLY_ONBOARDED",
            message="User successfully onboarded",
            data=data,
        )
