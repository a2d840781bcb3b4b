"""
Pytest configuration for the authentication service tests.
Provides a real TokenCodec plus in-memory stand-ins for the database services.

The in-memory services apply writes immediately and record an undo step on
the session they were given; ``FakeDatabaseManager.get_session`` replays the
undo log when the block raises, which mirrors commit/rollback.
"""

import os
import sys
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from sqlalchemy.exc import IntegrityError

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

from heron_auth.auth.rotation_engine import RotationEngine  # noqa: E402
from heron_auth.auth.token_codec import JwtConfig, TokenCodec  # noqa: E402
from heron_auth.models.account_models import (  # noqa: E402
    AdminAccount,
    CollegeDepartment,
    CollegeProgram,
    CounselorAccount,
    RefreshTokenRecord,
    StudentAccount,
    UserRole,
)
from heron_auth.utils.password_hashing import PasswordHasher  # noqa: E402

TEST_SECRET = "test-secret-key-for-unit-tests-only"


# ============================================================================
# IN-MEMORY DATABASE STAND-INS
# ============================================================================


class FakeSession:
    """Transaction handle that remembers how to undo its writes."""

    def __init__(self):
        self.undo_log: List = []
        self.committed = False
        self.rolled_back = False

    def on_rollback(self, undo) -> None:
        self.undo_log.append(undo)


class FakeDatabaseManager:
    def __init__(self):
        self.sessions: List[FakeSession] = []

    @asynccontextmanager
    async def get_session(self):
        session = FakeSession()
        self.sessions.append(session)
        try:
            yield session
        except Exception:
            for undo in reversed(session.undo_log):
                undo()
            session.rolled_back = True
            raise
        session.committed = True


class InMemoryRefreshTokenStore:
    def __init__(self, role: UserRole):
        self.role = role
        self.rows: Dict[uuid.UUID, RefreshTokenRecord] = {}

    async def find_by_user_and_token(self, user_id, token) -> Optional[RefreshTokenRecord]:
        user_id = uuid.UUID(str(user_id))
        for record in self.rows.values():
            if record.user_id == user_id and record.token == token:
                return record
        return None

    async def find_by_user(self, user_id) -> Optional[RefreshTokenRecord]:
        user_id = uuid.UUID(str(user_id))
        for record in self.rows.values():
            if record.user_id == user_id:
                return record
        return None

    async def save(self, record: RefreshTokenRecord, session=None) -> RefreshTokenRecord:
        if any(r.user_id == record.user_id for r in self.rows.values()):
            raise IntegrityError(
                "INSERT INTO refresh tokens", {}, Exception("duplicate key value (user_id)")
            )
        self.rows[record.token_id] = record
        if session is not None:
            session.on_rollback(lambda: self.rows.pop(record.token_id, None))
        return record

    async def delete(self, record: RefreshTokenRecord, session=None) -> bool:
        removed = self.rows.pop(record.token_id, None)
        if removed is None:
            return False
        if session is not None:
            session.on_rollback(lambda: self.rows.__setitem__(removed.token_id, removed))
        return True

    def tokens_for(self, user_id) -> List[RefreshTokenRecord]:
        return [r for r in self.rows.values() if r.user_id == user_id]


class InMemoryProgramsService:
    def __init__(self, programs: List[CollegeProgram]):
        self.programs = {p.program_name: p for p in programs}

    async def find_program_by_name(self, program_name, session=None):
        return self.programs.get(program_name)

    def by_id(self, program_id) -> Optional[CollegeProgram]:
        for program in self.programs.values():
            if program.program_id == program_id:
                return program
        return None


class InMemoryStudentsService:
    def __init__(self, programs: InMemoryProgramsService):
        self.programs = programs
        self.rows: Dict[uuid.UUID, StudentAccount] = {}

    def add(self, student: StudentAccount) -> StudentAccount:
        self.rows[student.user_id] = student
        return student

    async def find_by_email(self, email):
        for student in self.rows.values():
            if student.email == email.lower() and not student.is_deleted:
                return student
        return None

    async def find_by_id(self, user_id, session=None):
        student = self.rows.get(uuid.UUID(str(user_id)))
        if student is None or student.is_deleted:
            return None
        return student

    async def find_or_create(self, email, user_name):
        email = email.strip().lower()
        for student in self.rows.values():
            if student.email == email:
                return None if student.is_deleted else student
        return self.add(
            StudentAccount(user_id=uuid.uuid4(), email=email, user_name=user_name)
        )

    async def mark_onboarded(self, user_id, program_id, session=None) -> bool:
        student = self.rows.get(uuid.UUID(str(user_id)))
        if student is None or student.finished_onboarding:
            return False
        self.rows[student.user_id] = student.model_copy(
            update={
                "finished_onboarding": True,
                "college_program": self.programs.by_id(program_id),
            }
        )
        if session is not None:
            session.on_rollback(lambda: self.rows.__setitem__(student.user_id, student))
        return True


class InMemoryAccountsService:
    """Counselors or admins keyed by id."""

    def __init__(self):
        self.rows: Dict[uuid.UUID, object] = {}

    def add(self, account):
        self.rows[account.user_id] = account
        return account

    async def find_by_email(self, email):
        for account in self.rows.values():
            if account.email == email.lower() and not account.is_deleted:
                return account
        return None

    async def find_by_id(self, user_id, session=None):
        account = self.rows.get(uuid.UUID(str(user_id)))
        if account is None or account.is_deleted:
            return None
        return account


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def jwt_config():
    return JwtConfig(
        algorithm="HS256",
        issuer="heron-wellnest-auth-api",
        audience="heron-wellnest-clients",
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
        secret=TEST_SECRET,
    )


@pytest.fixture
def token_codec(jwt_config):
    return TokenCodec(jwt_config)


@pytest.fixture
def computing_department():
    return CollegeDepartment(
        department_id=uuid.uuid4(),
        department_name="College of Computing and Information Sciences",
    )


@pytest.fixture
def cs_program(computing_department):
    return CollegeProgram(
        program_id=uuid.uuid4(),
        program_name="Bachelor of Science in Computer Science",
        college_department=computing_department,
    )


@pytest.fixture
def fake_db():
    return FakeDatabaseManager()


@pytest.fixture
def refresh_stores():
    return {role: InMemoryRefreshTokenStore(role) for role in UserRole}


@pytest.fixture
def programs_service(cs_program):
    return InMemoryProgramsService([cs_program])


@pytest.fixture
def students_service(programs_service):
    return InMemoryStudentsService(programs_service)


@pytest.fixture
def counselors_service():
    return InMemoryAccountsService()


@pytest.fixture
def admins_service():
    return InMemoryAccountsService()


@pytest.fixture
def rotation_engine(
    token_codec,
    fake_db,
    refresh_stores,
    students_service,
    counselors_service,
    admins_service,
    programs_service,
):
    return RotationEngine(
        token_codec,
        database_manager=fake_db,
        refresh_stores=refresh_stores,
        students=students_service,
        counselors=counselors_service,
        admins=admins_service,
        programs=programs_service,
    )


@pytest.fixture
def pending_student(students_service):
    return students_service.add(
        StudentAccount(
            user_id=uuid.uuid4(),
            email="juan.delacruz@umak.edu.ph",
            user_name="Juan Dela Cruz",
        )
    )


@pytest.fixture
def onboarded_student(students_service, cs_program):
    return students_service.add(
        StudentAccount(
            user_id=uuid.uuid4(),
            email="maria.santos@umak.edu.ph",
            user_name="Maria Santos",
            finished_onboarding=True,
            college_program=cs_program,
        )
    )


@pytest.fixture(scope="session")
def known_password():
    return "SecurePass123"


@pytest.fixture(scope="session")
def known_password_hash(known_password):
    return PasswordHasher.hash_password(known_password)


@pytest.fixture
def counselor(counselors_service, computing_department, known_password_hash):
    return counselors_service.add(
        CounselorAccount(
            user_id=uuid.uuid4(),
            email="counselor@umak.edu.ph",
            user_name="Ana Reyes",
            password_hash=known_password_hash,
            college_department=computing_department,
        )
    )


@pytest.fixture
def admin(admins_service, known_password_hash):
    return admins_service.add(
        AdminAccount(
            user_id=uuid.uuid4(),
            email="admin@umak.edu.ph",
            user_name="Jose Rizal",
            password_hash=known_password_hash,
        )
    )


@pytest.fixture
def stored_refresh_record():
    """Build a RefreshTokenRecord without persisting it."""

    def _build(user_id, token="stored-token", expires_in=timedelta(days=7)):
        now = datetime.now(timezone.utc)
        return RefreshTokenRecord(
            token_id=uuid.uuid4(),
            user_id=user_id,
            token=token,
            expires_at=now + expires_in,
            created_at=now,
            updated_at=now,
        )

    return _build
