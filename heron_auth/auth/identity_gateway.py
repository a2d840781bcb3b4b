"""
Identity Gateway
----------------
Verifies identity assertions before they reach the rotation engine.

- Google ID tokens (students): signature checked against Google's published
  JWKS, audience must be our OAuth client id, the email must be verified and
  belong to the configured hosted domain.
- Local passwords (counselors, admins): bcrypt comparison.
"""

from typing import Any, Dict, Optional

import httpx
from jose import jwt, ExpiredSignatureError, JWTError
from jose.exceptions import JWTClaimsError
from loguru import logger

from heron_auth.auth.models import VerifiedIdentity
from heron_auth.core.config_manager import ApplicationSettings
from heron_auth.core.errors import (
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ServerError,
)
from heron_auth.utils.password_hashing import PasswordHasher

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

# Checked when no account matches an email.
_UNKNOWN_ACCOUNT_HASH = PasswordHasher.hash_password("heron-unknown-account")


class GoogleIdentityVerifier:
    """Verifies Google ID tokens for student sign-in."""

    def __init__(
        self,
        client_id: str,
        email_domain: str,
        certs_url: str,
        timeout_seconds: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id
        self.email_domain = email_domain
        self.certs_url = certs_url
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: ApplicationSettings) -> "GoogleIdentityVerifier":
        return cls(
            client_id=settings.google_client_id,
            email_domain=settings.google_email_domain,
            certs_url=settings.google_certs_url,
            timeout_seconds=settings.google_request_timeout_seconds,
        )

    async def fetch_signing_keys(self) -> Dict[str, Any]:
        """Download Google's current JWKS."""
        if self._http_client is not None:
            response = await self._http_client.get(self.certs_url)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(self.certs_url)
        response.raise_for_status()
        return response.json()

    async def verify(self, id_token: Any) -> VerifiedIdentity:
        """
        Verify a Google ID token and return the asserted identity.

        Args:
            id_token: Raw ID token taken from the bearer header

        Returns:
            VerifiedIdentity with email and display name

        Raises:
            AuthenticationError: Missing, invalid or mistimed token
            BadRequestError: Token is not a string
            AuthorizationError: Unverified email or foreign hosted domain
            ServerError: Any other verification failure (non-operational)
        """
        if not id_token:
            raise AuthenticationError("AUTH_NO_TOKEN", "No token provided")
        if not isinstance(id_token, str):
            raise BadRequestError("AUTH_INVALID_TYPE", "Invalid token type")

        try:
            keys = await self.fetch_signing_keys()
            payload = jwt.decode(
                id_token,
                keys,
                algorithms=["RS256"],
                audience=self.client_id,
                options={"verify_at_hash": False},
            )
        except ExpiredSignatureError as e:
            raise self._time_error() from e
        except JWTClaimsError as e:
            if "not yet valid" in str(e):
                raise self._time_error() from e
            raise AuthenticationError(
                "AUTH_INVALID_TOKEN", f"Invalid Google token: {e}"
            ) from e
        except JWTError as e:
            raise AuthenticationError(
                "AUTH_INVALID_TOKEN", "Invalid Google token payload"
            ) from e
        except Exception as e:
            logger.error(f"Google token verification failed: {e}")
            raise ServerError(
                "AUTH_TOKEN_VERIFICATION_FAILED",
                f"Failed to verify Google token: {e}",
            ) from e

        if payload.get("iss") not in GOOGLE_ISSUERS:
            raise AuthenticationError("AUTH_INVALID_TOKEN", "Invalid Google token issuer")

        if not payload.get("email_verified"):
            raise AuthorizationError("AUTH_EMAIL_NOT_VERIFIED", "Email not verified")

        domain = payload.get("hd")
        if domain != self.email_domain:
            raise AuthorizationError(
                "AUTH_UNAUTHORIZED_DOMAIN",
                f"Unauthorized domain: {domain}, {self.email_domain} email required",
            )

        email = payload.get("email")
        if not email:
            raise AuthenticationError("AUTH_INVALID_TOKEN", "Invalid Google token payload")

        return VerifiedIdentity(
            email=email.strip().lower(),
            name=payload.get("name") or email,
            subject=payload.get("sub"),
        )

    @staticmethod
    def _time_error() -> AuthenticationError:
        return AuthenticationError(
            "AUTH_TOKEN_TIME_ERROR",
            "Google token rejected due to time mismatch. "
            "Please check your device or server clock.",
        )


def verify_password_credentials(plain_password: str, stored_hash: Optional[str]) -> bool:
    """Compare a plain password with the stored bcrypt hash."""
    if stored_hash is None:
        PasswordHasher.verify_password(plain_password, _UNKNOWN_ACCOUNT_HASH)
        return False
    return PasswordHasher.verify_password(plain_password, stored_hash)
