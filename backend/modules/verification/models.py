"""
Email verification data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class VerificationType(str, Enum):
    """Purpose of a one-time email code."""

    SIGNUP = "signup"
    EMAIL_CHANGE = "email_change"
    LOGIN = "login"
    RECOVERY = "recovery"


class EmailVerification(BaseModel):
    """
    A pending or consumed one-time code.

    ``verified_at`` is set exactly once when the code is consumed. Rows are
    kept afterwards for audit purposes.
    """

    id: str
    user_id: str
    email: str
    verification_code: Optional[str] = None
    token: Optional[str] = Field(None, description="Legacy opaque link token")
    type: VerificationType
    expires_at: datetime
    verified_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) > self.expires_at

    @property
    def is_consumed(self) -> bool:
        return self.verified_at is not None
