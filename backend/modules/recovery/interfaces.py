"""
Recovery storage interface.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .models import BackupEmail, RecoveryCode


@runtime_checkable
class IRecoveryRepository(Protocol):
    """Persistence contract for recovery_codes and backup_emails."""

    def deactivate_codes(self, user_id: str) -> None:
        ...

    def create_code(self, data: dict[str, Any]) -> RecoveryCode:
        ...

    def get_active_code(self, user_id: str) -> Optional[RecoveryCode]:
        ...

    def claim_code(self, code_id: str, used_at: datetime) -> Optional[RecoveryCode]:
        """
        Mark a code used and inactive, only if it is still active.

        Returns:
            The updated row, or None if another request used it first
        """
        ...

    def replace_backup_email(self, data: dict[str, Any]) -> BackupEmail:
        """Deactivate the user's backup emails and insert a new one."""
        ...

    def get_active_backup_email(self, user_id: str) -> Optional[BackupEmail]:
        ...

    def mark_backup_email_verified(
        self, backup_email_id: str, verified_at: datetime
    ) -> Optional[BackupEmail]:
        ...
