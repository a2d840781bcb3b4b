"""
Application Errors
------------------
Typed error hierarchy raised by the authentication core.

Every error carries an HTTP-style status code, a stable machine-readable code,
a human readable message and an ``is_operational`` flag. Operational errors are
expected client-side failures; non-operational ones are server faults.
The FastAPI boundary serializes them into the uniform response envelope.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base error for every failure surfaced by the service."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        is_operational: bool = True,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.is_operational = is_operational

    def to_envelope(self) -> Dict[str, Any]:
        return {"success": False, "code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(status_code={self.status_code}, "
            f"code={self.code!r}, message={self.message!r})"
        )


class BadRequestError(AppError):
    """Missing or malformed client input."""

    status_code = 400


class AuthenticationError(AppError):
    """Credentials or tokens could not be authenticated."""

    status_code = 401


class AuthorizationError(AppError):
    """Authenticated identity is not allowed to proceed."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ServerError(AppError):
    """Unexpected server-side fault."""

    status_code = 500

    def __init__(self, code: str, message: str, is_operational: bool = False):
        super().__init__(code, message, is_operational=is_operational)


class KeyMaterialError(ServerError):
    """Signing key material is missing or unusable. Fatal at startup."""


class TokenVerificationError(AuthenticationError):
    """
    A JWT failed verification.

    ``reason`` is one of the TokenFailure values so callers can tell an
    expired token apart from a forged or malformed one.
    """

    def __init__(self, reason: str, code: str, message: str):
        super().__init__(code, message)
        self.reason = reason

    @property
    def is_expired(self) -> bool:
        return self.reason == "expired"
