"""
Authentication Core
-------------------
Token issuance and verification, identity verification and the
refresh-token rotation engine shared by students, counselors and admins.

Core Components:
- token_codec: JWT signing and classified verification
- claims_builder: access-token claims from current account state
- identity_gateway: Google ID token and password verification
- rotation_engine: login, logout, refresh and onboarding flows
- dependencies: FastAPI dependencies for route handlers
"""

from heron_auth.auth.claims_builder import build_access_claims
from heron_auth.auth.identity_gateway import (
    GoogleIdentityVerifier,
    verify_password_credentials,
)
from heron_auth.auth.models import AccessTokenClaims, VerifiedIdentity
from heron_auth.auth.rotation_engine import RotationEngine
from heron_auth.auth.token_codec import (
    JwtConfig,
    TokenCodec,
    TokenFailure,
    extract_bearer,
)

__all__ = [
    "build_access_claims",
    "GoogleIdentityVerifier",
    "verify_password_credentials",
    "AccessTokenClaims",
    "VerifiedIdentity",
    "RotationEngine",
    "JwtConfig",
    "TokenCodec",
    "TokenFailure",
    "extract_bearer",
]
