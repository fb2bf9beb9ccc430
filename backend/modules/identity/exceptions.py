"""
Identity provider exceptions.

Raw provider errors are translated into these before leaving the adapter.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    ConflictError,
    ErrorKind,
    ExternalServiceError,
    FamilyHubError,
    ValidationError,
)


class EmailAlreadyExistsError(ConflictError):
    """Raised when an account already exists for an email."""

    def __init__(self, email: str):
        super().__init__(
            "An account with this email already exists",
            code="USER_ALREADY_EXISTS",
        )
        self.email = email


class InvalidEmailError(ValidationError):
    """Raised when the provider rejects an email address."""

    def __init__(self, message: str = "Invalid email address"):
        super().__init__(message, code="INVALID_EMAIL")


class OtpVerificationError(FamilyHubError):
    """Raised when the provider rejects a one-time token."""

    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, reason: str):
        message = "Token has expired" if reason == "expired" else "Invalid or expired token"
        super().__init__(
            message,
            code="TOKEN_EXPIRED" if reason == "expired" else "INVALID_TOKEN",
            details={"reason": reason},
        )
        self.reason = reason


class SessionTokenError(AuthenticationError):
    """
    Raised when a refresh token cannot be exchanged.

    ``code`` is one of TOKEN_EXPIRED, INVALID_TOKEN, TOKEN_REVOKED,
    INVALID_REFRESH_TOKEN.
    """

    def __init__(self, code: str = "INVALID_REFRESH_TOKEN", message: str = "Invalid refresh token"):
        super().__init__(message, code=code)


class IdentityProviderError(ExternalServiceError):
    """Raised for provider failures with no more specific translation."""

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(
            f"Identity provider error during {operation}",
            service="identity",
            code="IDENTITY_PROVIDER_ERROR",
            details={"operation": operation, "provider_message": message},
        )
        self.operation = operation
