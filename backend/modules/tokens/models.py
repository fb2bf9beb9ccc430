"""
Token module data models.

AuthToken rows back every emailed link: magic links, family invitations and
legacy password resets. Only the hash of the raw token is persisted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class TokenType(str, Enum):
    """Kinds of emailed tokens."""

    MAGIC_LINK = "magic_link"
    FAMILY_INVITATION = "family_invitation"
    PASSWORD_RESET = "password_reset"


class TokenStatus(str, Enum):
    """Lifecycle state of an AuthToken."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


class AuthToken(BaseModel):
    """Stored token row. Never contains the raw token."""

    id: str
    token_hash: str
    token_type: TokenType
    token_status: TokenStatus = TokenStatus.ACTIVE
    user_id: Optional[str] = None
    email: Optional[str] = None
    family_id: Optional[str] = None
    expires_at: datetime
    max_uses: int = Field(default=1, ge=1)
    uses_count: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the token's expiry has passed."""
        return (now or datetime.now(timezone.utc)) > self.expires_at

    @property
    def uses_remaining(self) -> int:
        return max(self.max_uses - self.uses_count, 0)


class IssuedToken(BaseModel):
    """
    Result of issuing or rotating a token.

    ``raw_token`` is the only copy of the secret and must be delivered to the
    user immediately; it cannot be recovered from the stored row.
    """

    raw_token: str = Field(..., repr=False)
    token: AuthToken
