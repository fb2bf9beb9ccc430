"""
Recovery module exceptions.
"""

from shared.exceptions import ValidationError, AuthenticationError


class InvalidRecoveryError(AuthenticationError):
    """
    Raised for any failed recovery attempt.

    Unknown accounts, wrong codes and expired codes share this error so
    responses do not reveal which accounts exist.
    """

    def __init__(self, message: str = "Invalid email or recovery code"):
        super().__init__(message, code="INVALID_RECOVERY")


class BackupEmailConflictError(ValidationError):
    """Raised when a backup email equals the account's primary email."""

    def __init__(self):
        super().__init__(
            "Backup email must be different from your primary email",
            code="BACKUP_EMAIL_SAME_AS_PRIMARY",
        )


class BackupEmailNotFoundError(ValidationError):
    """Raised when confirming a backup email that was never added."""

    def __init__(self):
        super().__init__("No pending backup email to confirm", code="BACKUP_EMAIL_NOT_FOUND")
