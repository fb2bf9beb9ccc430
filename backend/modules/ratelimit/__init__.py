"""
Rate limiting module.

Public API:
- RateLimiter: Check, enforce and record attempts per endpoint and IP
- IAttemptStore: Storage interface (memory and Supabase implementations)
- DEFAULT_RULES: Endpoint limits
"""

from .exceptions import IpBlockedError, RateLimitExceededError
from .interfaces import IAttemptStore
from .models import (
    DEFAULT_RULES,
    BlockedIp,
    RateLimitAttempt,
    RateLimitDecision,
    RateLimitRule,
    RiskAssessment,
)
from .service import BLOCK_THRESHOLD, SUSPICIOUS_THRESHOLD, RateLimiter
from .store import MemoryAttemptStore, SupabaseAttemptStore

__all__ = [
    "IAttemptStore",
    "DEFAULT_RULES",
    "BlockedIp",
    "RateLimitAttempt",
    "RateLimitDecision",
    "RateLimitRule",
    "RiskAssessment",
    "IpBlockedError",
    "RateLimitExceededError",
    "RateLimiter",
    "BLOCK_THRESHOLD",
    "SUSPICIOUS_THRESHOLD",
    "MemoryAttemptStore",
    "SupabaseAttemptStore",
]
