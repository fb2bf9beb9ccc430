"""
Email verification storage interface.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .models import EmailVerification, VerificationType


@runtime_checkable
class IVerificationRepository(Protocol):
    """Persistence contract for the email_verifications table."""

    def create(self, data: dict[str, Any]) -> EmailVerification:
        ...

    def find_pending_by_code(
        self,
        code: str,
        verification_type: VerificationType,
        now: datetime,
        email: Optional[str] = None,
    ) -> Optional[EmailVerification]:
        """Unconsumed, unexpired record matching the code."""
        ...

    def find_latest_by_code(
        self,
        code: str,
        verification_type: VerificationType,
        email: Optional[str] = None,
    ) -> Optional[EmailVerification]:
        """Most recent record matching the code, whatever its state."""
        ...

    def find_by_token(
        self, token: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        ...

    def find_latest_for_user(
        self, user_id: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        ...

    def claim(self, verification_id: str, verified_at: datetime) -> Optional[EmailVerification]:
        """
        Set verified_at only if it is still null.

        Returns:
            The updated record, or None when it was already consumed
        """
        ...

    def expire_pending(
        self, user_id: str, verification_type: VerificationType, now: datetime
    ) -> None:
        """Expire a user's unconsumed codes of one type."""
        ...
