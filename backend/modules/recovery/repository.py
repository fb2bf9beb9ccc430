"""
Recovery repositories.

Encapsulates storage for the recovery_codes and backup_emails tables.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from shared.repository import BaseRepository
from .models import BackupEmail, RecoveryCode


class MemoryRecoveryRepository:
    """Recovery storage held in dicts. For testing and development."""

    def __init__(self) -> None:
        self.codes: dict[str, RecoveryCode] = {}
        self.backup_emails: dict[str, BackupEmail] = {}

    def deactivate_codes(self, user_id: str) -> None:
        for code in list(self.codes.values()):
            if code.user_id == user_id and code.is_active:
                self.codes[code.id] = code.model_copy(update={"is_active": False})

    def create_code(self, data: dict[str, Any]) -> RecoveryCode:
        code = RecoveryCode(id=str(uuid.uuid4()), **data)
        self.codes[code.id] = code
        return code

    def get_active_code(self, user_id: str) -> Optional[RecoveryCode]:
        for code in self.codes.values():
            if code.user_id == user_id and code.is_active:
                return code
        return None

    def claim_code(self, code_id: str, used_at: datetime) -> Optional[RecoveryCode]:
        code = self.codes.get(code_id)
        if code is None or not code.is_active:
            return None
        claimed = code.model_copy(update={"is_active": False, "used_at": used_at})
        self.codes[code_id] = claimed
        return claimed

    def replace_backup_email(self, data: dict[str, Any]) -> BackupEmail:
        for backup in list(self.backup_emails.values()):
            if backup.user_id == data["user_id"] and backup.is_active:
                self.backup_emails[backup.id] = backup.model_copy(update={"is_active": False})
        backup = BackupEmail(id=str(uuid.uuid4()), **data)
        self.backup_emails[backup.id] = backup
        return backup

    def get_active_backup_email(self, user_id: str) -> Optional[BackupEmail]:
        for backup in self.backup_emails.values():
            if backup.user_id == user_id and backup.is_active:
                return backup
        return None

    def mark_backup_email_verified(
        self, backup_email_id: str, verified_at: datetime
    ) -> Optional[BackupEmail]:
        backup = self.backup_emails.get(backup_email_id)
        if backup is None:
            return None
        verified = backup.model_copy(update={
            "is_verified": True,
            "verified_at": verified_at,
            "verification_code": None,
            "verification_code_expires_at": None,
        })
        self.backup_emails[backup_email_id] = verified
        return verified


class SupabaseRecoveryRepository(BaseRepository[RecoveryCode]):
    """Repository for recovery_codes and backup_emails."""

    # -------------------------------------------------------------------------
    # Recovery codes
    # -------------------------------------------------------------------------

    def deactivate_codes(self, user_id: str) -> None:
        (
            self._db.table("recovery_codes")
            .update({"is_active": False})
            .eq("user_id", user_id)
            .eq("is_active", True)
            .execute()
        )

    def create_code(self, data: dict[str, Any]) -> RecoveryCode:
        row = dict(data)
        row["expires_at"] = row["expires_at"].isoformat()
        result = self._db.table("recovery_codes").insert(row).execute()
        return RecoveryCode.model_validate(result.data[0])

    def get_active_code(self, user_id: str) -> Optional[RecoveryCode]:
        result = (
            self._db.table("recovery_codes")
            .select("*")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return self._first(result.data, RecoveryCode)

    def claim_code(self, code_id: str, used_at: datetime) -> Optional[RecoveryCode]:
        result = (
            self._db.table("recovery_codes")
            .update({"is_active": False, "used_at": used_at.isoformat()})
            .eq("id", code_id)
            .eq("is_active", True)
            .execute()
        )
        return self._first(result.data, RecoveryCode)

    # -------------------------------------------------------------------------
    # Backup emails
    # -------------------------------------------------------------------------

    def replace_backup_email(self, data: dict[str, Any]) -> BackupEmail:
        (
            self._db.table("backup_emails")
            .update({"is_active": False})
            .eq("user_id", data["user_id"])
            .eq("is_active", True)
            .execute()
        )
        row = dict(data)
        if row.get("verification_code_expires_at") is not None:
            row["verification_code_expires_at"] = row["verification_code_expires_at"].isoformat()
        result = self._db.table("backup_emails").insert(row).execute()
        return BackupEmail.model_validate(result.data[0])

    def get_active_backup_email(self, user_id: str) -> Optional[BackupEmail]:
        result = (
            self._db.table("backup_emails")
            .select("*")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return self._first(result.data, BackupEmail)

    def mark_backup_email_verified(
        self, backup_email_id: str, verified_at: datetime
    ) -> Optional[BackupEmail]:
        result = (
            self._db.table("backup_emails")
            .update({
                "is_verified": True,
                "verified_at": verified_at.isoformat(),
                "verification_code": None,
                "verification_code_expires_at": None,
            })
            .eq("id", backup_email_id)
            .execute()
        )
        return self._first(result.data, BackupEmail)
