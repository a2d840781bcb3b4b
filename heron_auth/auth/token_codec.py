"""
Token Codec
-----------
Signs and verifies access and refresh JWTs.

Implements:
- HS256 (shared secret) or RS256 (private/public key pair) signing
- Issuer, audience, issued-at, expiry and unique jti on every token
- Minimal refresh tokens (sub, type, jti) so long-lived tokens carry no PII
- Classified verification failures (expired vs. forged vs. malformed)

Key material is loaded once when the codec is constructed; missing keys raise
``KeyMaterialError`` from the constructor.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from jose import jwt, ExpiredSignatureError, JWTError
from jose.exceptions import JWTClaimsError
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from heron_auth.auth.models import AccessTokenClaims
from heron_auth.core.config_manager import ApplicationSettings
from heron_auth.core.errors import (
    AuthenticationError,
    BadRequestError,
    KeyMaterialError,
    TokenVerificationError,
)

CLOCK_SKEW_LEEWAY_SECONDS = 2
SUPPORTED_ALGORITHMS = ("HS256", "RS256")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenFailure(str, Enum):
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"
    INVALID_CLAIM = "invalid_claim"
    MALFORMED = "malformed"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    TYPE_MISMATCH = "type_mismatch"


_FAILURE_CODES = {
    TokenFailure.EXPIRED: ("TOKEN_EXPIRED", "Token has expired"),
    TokenFailure.BAD_SIGNATURE: ("TOKEN_BAD_SIGNATURE", "Token signature is invalid"),
    TokenFailure.INVALID_CLAIM: ("TOKEN_INVALID_CLAIM", "Token claims are invalid"),
    TokenFailure.MALFORMED: ("TOKEN_MALFORMED", "Token is malformed"),
    TokenFailure.ALGORITHM_MISMATCH: (
        "TOKEN_ALGORITHM_MISMATCH",
        "Token was signed with an unexpected algorithm",
    ),
    TokenFailure.TYPE_MISMATCH: ("TOKEN_TYPE_MISMATCH", "Unexpected token type"),
}


def token_error(reason: TokenFailure, detail: Optional[str] = None) -> TokenVerificationError:
    code, message = _FAILURE_CODES[reason]
    if detail:
        message = f"{message}: {detail}"
    return TokenVerificationError(reason.value, code, message)


class JwtConfig(BaseModel):
    """Immutable signing configuration shared by every request."""

    model_config = ConfigDict(frozen=True)

    algorithm: str
    issuer: str
    audience: str
    access_token_ttl: timedelta
    refresh_token_ttl: timedelta
    secret: Optional[str] = Field(default=None, repr=False)
    private_key: Optional[str] = Field(default=None, repr=False)
    public_key: Optional[str] = Field(default=None, repr=False)

    @classmethod
    def from_settings(cls, settings: ApplicationSettings) -> "JwtConfig":
        return cls(
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_token_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_token_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
            secret=settings.jwt_secret,
            private_key=settings.jwt_private_key,
            public_key=settings.jwt_public_key,
        )


def _read_pem(value: str) -> str:
    """Accept either an inline PEM or a path to a PEM file."""
    if "-----BEGIN" in value:
        return value
    path = Path(value)
    if path.is_file():
        return path.read_text(encoding="utf-8")
    return value


class TokenCodec:
    """Issues and verifies the service's JWTs."""

    def __init__(self, config: JwtConfig):
        self.config = config
        self.algorithm = config.algorithm
        self._signing_key: str
        self._verifying_key: str

        if self.algorithm == "HS256":
            if not config.secret:
                raise KeyMaterialError(
                    "JWT_SECRET_MISSING", "JWT_SECRET is required for HS256"
                )
            self._signing_key = config.secret
            self._verifying_key = config.secret
        elif self.algorithm == "RS256":
            if not config.private_key or not config.public_key:
                raise KeyMaterialError(
                    "JWT_KEYS_MISSING", "RS256 private and public keys are required"
                )
            self._signing_key = _read_pem(config.private_key)
            self._verifying_key = _read_pem(config.public_key)
        else:
            raise KeyMaterialError(
                "JWT_ALGORITHM_UNSUPPORTED",
                f"Unsupported JWT algorithm '{self.algorithm}'. "
                f"Must be one of: {', '.join(SUPPORTED_ALGORITHMS)}",
            )

        logger.info(
            f"Token codec ready (alg={self.algorithm}, iss={config.issuer}, "
            f"aud={config.audience})"
        )

    # ========================================================================
    # ISSUANCE
    # ========================================================================

    def _standard_claims(self, ttl: timedelta, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        return {
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": str(uuid.uuid4()),
        }

    def _sign(self, payload: Dict[str, Any]) -> str:
        try:
            return jwt.encode(
                payload,
                self._signing_key,
                algorithm=self.algorithm,
                headers={"typ": "JWT"},
            )
        except JWTError as e:
            logger.error(f"Failed to sign token: {e}")
            raise KeyMaterialError("JWT_SIGNING_FAILED", f"Token signing failed: {e}")

    def issue_access(self, claims: AccessTokenClaims, now: Optional[datetime] = None) -> str:
        """
        Create a short-lived access token carrying the full claim set.

        Args:
            claims: Claims built from the current account state
            now: Issuance time, defaults to the current UTC time

        Returns:
            Signed JWT access token
        """
        payload = claims.to_jwt_claims()
        payload.update(self._standard_claims(self.config.access_token_ttl, now))
        payload["type"] = ACCESS_TOKEN_TYPE
        token = self._sign(payload)
        logger.debug(f"Access token issued for {claims.sub} (role={claims.role})")
        return token

    def issue_refresh(self, subject: str, now: Optional[datetime] = None) -> str:
        """
        Create a long-lived refresh token.

        Only the subject, type and jti are embedded besides standard claims.
        """
        payload: Dict[str, Any] = {"sub": str(subject), "type": REFRESH_TOKEN_TYPE}
        payload.update(self._standard_claims(self.config.refresh_token_ttl, now))
        token = self._sign(payload)
        logger.debug(f"Refresh token issued for {subject}")
        return token

    def refresh_expires_at(self, now: Optional[datetime] = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now + self.config.refresh_token_ttl

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    def verify(self, token: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Verify signature, issuer, audience and expiry of a token.

        Args:
            token: Encoded JWT
            expected_type: "access" or "refresh" to also enforce the token type

        Returns:
            Verified claims

        Raises:
            TokenVerificationError: With ``reason`` set to the failure class
        """
        if not token or not isinstance(token, str):
            raise token_error(TokenFailure.MALFORMED, "empty token")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise token_error(TokenFailure.MALFORMED) from e

        if header.get("alg") != self.algorithm:
            logger.warning(
                f"Token algorithm mismatch: expected {self.algorithm}, got {header.get('alg')}"
            )
            raise token_error(TokenFailure.ALGORITHM_MISMATCH)

        try:
            claims = jwt.decode(
                token,
                self._verifying_key,
                algorithms=[self.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                options={
                    "leeway": CLOCK_SKEW_LEEWAY_SECONDS,
                    "require_exp": True,
                    "require_iat": True,
                    "require_iss": True,
                    "require_aud": True,
                    "require_sub": True,
                    "require_jti": True,
                },
            )
        except ExpiredSignatureError as e:
            raise token_error(TokenFailure.EXPIRED) from e
        except JWTClaimsError as e:
            raise token_error(TokenFailure.INVALID_CLAIM, str(e)) from e
        except JWTError as e:
            raise self._classify(e) from e

        if expected_type is not None and claims.get("type") != expected_type:
            raise token_error(
                TokenFailure.TYPE_MISMATCH,
                f"expected '{expected_type}', got '{claims.get('type')}'",
            )

        return claims

    @staticmethod
    def _classify(error: JWTError) -> TokenVerificationError:
        message = str(error)
        if "Signature verification failed" in message:
            return token_error(TokenFailure.BAD_SIGNATURE)
        if "alg value is not allowed" in message:
            return token_error(TokenFailure.ALGORITHM_MISMATCH)
        if "missing required key" in message:
            return token_error(TokenFailure.INVALID_CLAIM, message)
        return token_error(TokenFailure.MALFORMED)

    def decode_unsafe(self, token: str) -> Dict[str, Any]:
        """
        Decode claims WITHOUT verifying anything.

        For logging and diagnostics only. Never authorize on the result.
        """
        try:
            return jwt.get_unverified_claims(token)
        except JWTError as e:
            raise token_error(TokenFailure.MALFORMED) from e


def extract_bearer(auth_header: Optional[str]) -> str:
    """
    Read the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: If the header is absent
        BadRequestError: If the header is not a bearer credential
    """
    if not auth_header:
        raise AuthenticationError("AUTH_NO_TOKEN", "No token provided")
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise BadRequestError("AUTH_INVALID_TYPE", "Authorization header must be a Bearer token")
    return parts[1].strip()
