"""
Authentication module exceptions.

These exceptions are raised by the auth flows and rendered by the API
error handlers according to their kind.
"""

from shared.exceptions import ErrorKind, FamilyHubError, NotFoundError


class DisposableEmailError(FamilyHubError):
    """Raised when signing up with a disposable email domain."""

    kind = ErrorKind.DISPOSABLE_EMAIL

    def __init__(self, domain: str):
        super().__init__(
            "Disposable email addresses are not allowed",
            code="DISPOSABLE_EMAIL",
            details={"domain": domain},
        )


class InvalidInvitationError(FamilyHubError):
    """Raised when a family invitation token cannot be redeemed."""

    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, reason: str):
        super().__init__(
            "Invalid or expired family invitation",
            code="INVALID_INVITATION",
            details={"reason": reason},
        )
        self.reason = reason


class InvitationEmailMismatchError(FamilyHubError):
    """Raised when the signup email differs from the invited email."""

    kind = ErrorKind.EMAIL_MISMATCH

    def __init__(self):
        super().__init__(
            "Email does not match the invitation",
            code="EMAIL_MISMATCH",
        )


class UserNotFoundError(NotFoundError):
    """Raised when no account exists for an email."""

    def __init__(self):
        super().__init__("No account found with this email address", code="USER_NOT_FOUND")


class AccountLockedError(FamilyHubError):
    """Raised when sign-in is locked after suspicious activity."""

    kind = ErrorKind.LOCKED

    def __init__(self, minutes: int):
        super().__init__(
            "Account temporarily locked due to suspicious activity",
            code="ACCOUNT_LOCKED",
            details={"locked_minutes": minutes},
        )
