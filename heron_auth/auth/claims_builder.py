"""
Access Token Claims
-------------------
Maps a user account to the claim set carried by its access token.

Claims are rebuilt from the current account state on every issuance, so a
token minted after onboarding or a department change always reflects it.
"""

from typing import Optional, Tuple

from heron_auth.auth.models import AccessTokenClaims
from heron_auth.models.account_models import (
    AdminAccount,
    CollegeProgram,
    CounselorAccount,
    StudentAccount,
)


def _program_affiliation(
    program: Optional[CollegeProgram],
) -> Tuple[Optional[str], Optional[str]]:
    if program is None:
        return None, None
    department = program.college_department
    return program.program_name, department.department_name if department else None


def student_role(account: StudentAccount) -> str:
    return "student" if account.finished_onboarding else "student_pending"


def build_access_claims(account) -> AccessTokenClaims:
    """
    Build access-token claims for any account variant.

    Args:
        account: StudentAccount, CounselorAccount or AdminAccount

    Returns:
        AccessTokenClaims for the account's current state

    Raises:
        TypeError: If the account type is not a known role
    """
    if isinstance(account, StudentAccount):
        program_name, department_name = _program_affiliation(account.college_program)
        return AccessTokenClaims(
            sub=str(account.user_id),
            role=student_role(account),
            email=account.email,
            name=account.user_name,
            is_onboarded=account.finished_onboarding,
            college_program=program_name,
            college_department=department_name,
        )

    if isinstance(account, CounselorAccount):
        department = account.college_department
        return AccessTokenClaims(
            sub=str(account.user_id),
            role="counselor",
            email=account.email,
            name=account.user_name,
            college_program=None,
            college_department=department.department_name if department else None,
        )

    if isinstance(account, AdminAccount):
        return AccessTokenClaims(
            sub=str(account.user_id),
            role="super_admin" if account.is_super_admin else "admin",
            email=account.email,
            name=account.user_name,
        )

    raise TypeError(f"Unsupported account type: {type(account).__name__}")
