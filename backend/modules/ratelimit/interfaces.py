"""
Rate limiting interfaces.

The limiter is handed an attempt store explicitly; nothing in this module
keeps counters at module level.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from .models import BlockedIp, RateLimitAttempt


@runtime_checkable
class IAttemptStore(Protocol):
    """Persistent store of rate-limit attempts and IP blocks."""

    def add_attempt(self, attempt: RateLimitAttempt) -> None:
        ...

    def list_attempts(self, key: str, since: datetime) -> list[RateLimitAttempt]:
        """Attempts for one key at or after ``since``."""
        ...

    def list_attempts_by_ip(self, ip_address: str, since: datetime) -> list[RateLimitAttempt]:
        """Attempts from one IP across all endpoints."""
        ...

    def clear_failures(self, key: str) -> None:
        ...

    def block_ip(self, block: BlockedIp) -> None:
        ...

    def get_block(self, ip_address: str, now: datetime) -> Optional[BlockedIp]:
        """Active block for an IP, if any."""
        ...
