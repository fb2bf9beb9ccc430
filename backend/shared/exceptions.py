"""
Base exception classes for the FamilyHub backend.

Each module should define its own exceptions that inherit from these bases.
Every exception carries an ErrorKind, which is the single source of truth for
how an error is reported over HTTP. Handlers branch on ``error.kind`` rather
than on concrete exception classes.
"""

from enum import Enum
from typing import Optional, Any


class ErrorKind(str, Enum):
    """Discriminator for the error taxonomy."""

    VALIDATION = "validation"
    DISPOSABLE_EMAIL = "disposable_email"
    CONFLICT = "conflict"
    INVALID_TOKEN = "invalid_token"
    EMAIL_MISMATCH = "email_mismatch"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    LOCKED = "locked"
    RATE_LIMITED = "rate_limited"
    EXTERNAL_SERVICE = "external_service"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.DISPOSABLE_EMAIL: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_TOKEN: 400,
    ErrorKind.EMAIL_MISMATCH: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.LOCKED: 423,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.EXTERNAL_SERVICE: 500,
    ErrorKind.INTERNAL: 500,
}


class FamilyHubError(Exception):
    """
    Base exception for all FamilyHub errors.

    All custom exceptions should inherit from this class.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    @property
    def status_code(self) -> int:
        """HTTP status for this error's kind."""
        return STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(FamilyHubError):
    """Resource not found."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(FamilyHubError):
    """Input validation failed."""

    kind = ErrorKind.VALIDATION


class ConflictError(FamilyHubError):
    """Resource already exists."""

    kind = ErrorKind.CONFLICT


class AuthenticationError(FamilyHubError):
    """Authentication failed (invalid or missing credentials)."""

    kind = ErrorKind.AUTHENTICATION


class AuthorizationError(FamilyHubError):
    """Authorization failed (insufficient permissions)."""

    kind = ErrorKind.AUTHORIZATION


class ExternalServiceError(FamilyHubError):
    """Error communicating with an external service."""

    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
