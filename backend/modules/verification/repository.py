"""
Email verification repositories.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from shared.repository import BaseRepository
from .models import EmailVerification, VerificationType

TABLE = "email_verifications"


class MemoryVerificationRepository:
    """Verification storage held in a dict. For testing and development."""

    def __init__(self) -> None:
        self._records: dict[str, EmailVerification] = {}

    def _matching(
        self,
        verification_type: VerificationType,
        email: Optional[str] = None,
    ) -> list[EmailVerification]:
        records = [
            r for r in self._records.values()
            if r.type == verification_type and (email is None or r.email == email)
        ]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def create(self, data: dict[str, Any]) -> EmailVerification:
        record = EmailVerification(id=str(uuid.uuid4()), **data)
        self._records[record.id] = record
        return record

    def get(self, verification_id: str) -> Optional[EmailVerification]:
        return self._records.get(verification_id)

    def find_pending_by_code(
        self,
        code: str,
        verification_type: VerificationType,
        now: datetime,
        email: Optional[str] = None,
    ) -> Optional[EmailVerification]:
        for record in self._matching(verification_type, email):
            if (
                record.verification_code == code
                and record.verified_at is None
                and record.expires_at >= now
            ):
                return record
        return None

    def find_latest_by_code(
        self,
        code: str,
        verification_type: VerificationType,
        email: Optional[str] = None,
    ) -> Optional[EmailVerification]:
        for record in self._matching(verification_type, email):
            if record.verification_code == code:
                return record
        return None

    def find_by_token(
        self, token: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        for record in self._matching(verification_type):
            if record.token == token:
                return record
        return None

    def find_latest_for_user(
        self, user_id: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        for record in self._matching(verification_type):
            if record.user_id == user_id:
                return record
        return None

    def claim(self, verification_id: str, verified_at: datetime) -> Optional[EmailVerification]:
        record = self._records.get(verification_id)
        if record is None or record.verified_at is not None:
            return None
        claimed = record.model_copy(update={"verified_at": verified_at})
        self._records[verification_id] = claimed
        return claimed

    def expire_pending(
        self, user_id: str, verification_type: VerificationType, now: datetime
    ) -> None:
        for record in self._matching(verification_type):
            if record.user_id == user_id and record.verified_at is None and record.expires_at > now:
                self._records[record.id] = record.model_copy(update={"expires_at": now})


class SupabaseVerificationRepository(BaseRepository[EmailVerification]):
    """Repository for the email_verifications table."""

    def create(self, data: dict[str, Any]) -> EmailVerification:
        row = dict(data)
        row["type"] = VerificationType(row["type"]).value
        row["expires_at"] = row["expires_at"].isoformat()
        result = self._db.table(TABLE).insert(row).execute()
        return EmailVerification.model_validate(result.data[0])

    def _by_code(self, code: str, verification_type: VerificationType, email: Optional[str]):
        query = (
            self._db.table(TABLE)
            .select("*")
            .eq("verification_code", code)
            .eq("type", verification_type.value)
        )
        if email is not None:
            query = query.eq("email", email)
        return query

    def find_pending_by_code(
        self,
        code: str,
        verification_type: VerificationType,
        now: datetime,
        email: Optional[str] = None,
    ) -> Optional[EmailVerification]:
        result = (
            self._by_code(code, verification_type, email)
            .is_("verified_at", "null")
            .gte("expires_at", now.isoformat())
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return self._first(result.data, EmailVerification)

    def find_latest_by_code(
        self,
        code: str,
        verification_type: VerificationType,
        email: Optional[str] = None,
    ) -> Optional[EmailVerification]:
        result = (
            self._by_code(code, verification_type, email)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return self._first(result.data, EmailVerification)

    def find_by_token(
        self, token: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        result = (
            self._db.table(TABLE)
            .select("*")
            .eq("token", token)
            .eq("type", verification_type.value)
            .limit(1)
            .execute()
        )
        return self._first(result.data, EmailVerification)

    def find_latest_for_user(
        self, user_id: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        result = (
            self._db.table(TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("type", verification_type.value)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return self._first(result.data, EmailVerification)

    def claim(self, verification_id: str, verified_at: datetime) -> Optional[EmailVerification]:
        result = (
            self._db.table(TABLE)
            .update({"verified_at": verified_at.isoformat()})
            .eq("id", verification_id)
            .is_("verified_at", "null")
            .execute()
        )
        return self._first(result.data, EmailVerification)

    def expire_pending(
        self, user_id: str, verification_type: VerificationType, now: datetime
    ) -> None:
        (
            self._db.table(TABLE)
            .update({"expires_at": now.isoformat()})
            .eq("user_id", user_id)
            .eq("type", verification_type.value)
            .is_("verified_at", "null")
            .gt("expires_at", now.isoformat())
            .execute()
        )
