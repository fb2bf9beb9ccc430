"""
One-time email code service.

Codes are looked up first as an unconsumed, unexpired match. When that
fails, the most recent record with the same code decides which error is
reported, so already-used and expired codes are distinguishable from wrong
ones. Consumption is a conditional update on ``verified_at``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from modules.tokens.generator import generate_secure_token, generate_verification_code

from .exceptions import AlreadyVerifiedError, CodeExpiredError, InvalidCodeError
from .interfaces import IVerificationRepository
from .models import EmailVerification, VerificationType

logger = logging.getLogger(__name__)


class VerificationService:
    """Issues and consumes six-digit email codes."""

    def __init__(self, repository: IVerificationRepository):
        self._repository = repository

    async def issue(
        self,
        user_id: str,
        email: str,
        verification_type: VerificationType,
        ttl: timedelta,
        with_token: bool = False,
    ) -> EmailVerification:
        """
        Issue a fresh code, expiring any pending code of the same type.

        Args:
            user_id: Owner of the code
            email: Address the code is sent to
            verification_type: Purpose of the code
            ttl: Lifetime from now
            with_token: Also generate a legacy opaque link token

        Returns:
            The stored EmailVerification, including the code to send
        """
        now = datetime.now(timezone.utc)
        self._repository.expire_pending(user_id, verification_type, now)
        return self._repository.create({
            "user_id": user_id,
            "email": email,
            "verification_code": generate_verification_code(),
            "token": generate_secure_token() if with_token else None,
            "type": verification_type,
            "expires_at": now + ttl,
        })

    def _check(self, record: EmailVerification, now: datetime) -> None:
        if record.verified_at is not None:
            raise AlreadyVerifiedError()
        if record.is_expired(now):
            raise CodeExpiredError()

    async def _claim(self, record: EmailVerification, now: datetime) -> EmailVerification:
        claimed = self._repository.claim(record.id, now)
        if claimed is None:
            raise AlreadyVerifiedError()
        return claimed

    async def verify_code(
        self,
        code: str,
        verification_type: VerificationType,
        email: Optional[str] = None,
    ) -> EmailVerification:
        """
        Consume a six-digit code.

        Raises:
            InvalidCodeError: If no record has this code
            AlreadyVerifiedError: If the record was already consumed
            CodeExpiredError: If the record has expired
        """
        now = datetime.now(timezone.utc)
        record = self._repository.find_pending_by_code(code, verification_type, now, email)
        if record is None:
            latest = self._repository.find_latest_by_code(code, verification_type, email)
            if latest is None:
                raise InvalidCodeError()
            self._check(latest, now)
            record = latest
        return await self._claim(record, now)

    async def find_token(
        self, token: str, verification_type: VerificationType
    ) -> Optional[EmailVerification]:
        return self._repository.find_by_token(token, verification_type)

    async def verify_token(
        self, token: str, verification_type: VerificationType
    ) -> EmailVerification:
        """
        Consume a legacy opaque token.

        Raises:
            InvalidCodeError: If no record has this token
            AlreadyVerifiedError: If the record was already consumed
            CodeExpiredError: If the record has expired
        """
        now = datetime.now(timezone.utc)
        record = self._repository.find_by_token(token, verification_type)
        if record is None:
            raise InvalidCodeError("Invalid verification token")
        self._check(record, now)
        return await self._claim(record, now)

    async def is_verified(self, user_id: str, verification_type: VerificationType) -> bool:
        """Whether the user's latest code of this type was consumed."""
        latest = self._repository.find_latest_for_user(user_id, verification_type)
        return latest is not None and latest.verified_at is not None
