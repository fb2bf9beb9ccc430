"""
Rate limiting data models.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class RateLimitRule(BaseModel):
    """
    Limit for one endpoint.

    Attributes:
        key: Prefix of the storage key (``<key>:<ip>``)
        limit: Attempts allowed inside the window
        window_seconds: Window length
        failures_only: Count only failed attempts toward the limit
        clear_on_success: Forget earlier failures after a success
    """

    key: str
    limit: int = Field(..., ge=1)
    window_seconds: int = Field(..., ge=1)
    failures_only: bool = False
    clear_on_success: bool = False


DEFAULT_RULES: dict[str, RateLimitRule] = {
    "auth:login": RateLimitRule(
        key="login", limit=5, window_seconds=300, failures_only=True, clear_on_success=True
    ),
    "auth:send-code": RateLimitRule(key="send_code", limit=5, window_seconds=900),
    "auth:signup": RateLimitRule(key="signup", limit=3, window_seconds=3600),
    "auth:forgot-password": RateLimitRule(key="forgot_password", limit=3, window_seconds=3600),
    "auth:verify-email": RateLimitRule(
        key="verify_email", limit=10, window_seconds=3600, failures_only=True, clear_on_success=True
    ),
    "auth:resend-verification": RateLimitRule(
        key="resend_verification", limit=3, window_seconds=900
    ),
    "auth:recovery": RateLimitRule(
        key="recovery", limit=5, window_seconds=900, failures_only=True, clear_on_success=True
    ),
    "auth:refresh": RateLimitRule(key="refresh", limit=20, window_seconds=3600),
}


class RateLimitAttempt(BaseModel):
    """One recorded attempt."""

    key: str
    endpoint: str
    ip_address: str
    identity: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool
    attempted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RateLimitDecision(BaseModel):
    """Outcome of a rate-limit check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0
    reset_at: Optional[datetime] = None


class RiskAssessment(BaseModel):
    """Suspicious-activity score for an IP over the last hour."""

    score: int = 0
    suspicious: bool = False
    reasons: list[str] = Field(default_factory=list)


class BlockedIp(BaseModel):
    """An IP refused until ``blocked_until``."""

    ip_address: str
    blocked_until: datetime
    reason: str = ""
