"""
Email verification exceptions.

All three share the INVALID_TOKEN kind and are told apart by ``reason``
and ``code``.
"""

from shared.exceptions import ErrorKind, FamilyHubError


class VerificationError(FamilyHubError):
    """Base exception for one-time code failures."""

    kind = ErrorKind.INVALID_TOKEN
    reason = "invalid"

    def __init__(self, message: str, code: str):
        super().__init__(message, code=code, details={"reason": self.reason})


class InvalidCodeError(VerificationError):
    """Raised when no record matches the submitted code or token."""

    reason = "invalid"

    def __init__(self, message: str = "Invalid verification code"):
        super().__init__(message, code="INVALID_CODE")


class CodeExpiredError(VerificationError):
    """Raised when the matching record is past its expiry."""

    reason = "expired"

    def __init__(self, message: str = "Verification code has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class AlreadyVerifiedError(VerificationError):
    """Raised when the matching record was already consumed."""

    reason = "already_verified"

    def __init__(self, message: str = "Email has already been verified"):
        super().__init__(message, code="ALREADY_VERIFIED")
