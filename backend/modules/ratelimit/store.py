"""
Attempt stores for the rate limiter.

MemoryAttemptStore serves a single process (tests, local development).
SupabaseAttemptStore shares counters across instances through the
rate_limit_attempts and blocked_ips tables.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from shared.repository import BaseRepository
from .models import DEFAULT_RULES, BlockedIp, RateLimitAttempt

# Longest window any default rule or the IP risk score looks back over.
DEFAULT_RETENTION = timedelta(
    seconds=max(3600, *(rule.window_seconds for rule in DEFAULT_RULES.values()))
)


class MemoryAttemptStore:
    """In-process attempt store.

    Attempts older than the retention period are dropped on every write,
    so memory stays bounded by the traffic seen within one window.
    """

    def __init__(self, retention: timedelta = DEFAULT_RETENTION) -> None:
        self._retention = retention
        self._attempts: list[RateLimitAttempt] = []
        self._blocks: dict[str, BlockedIp] = {}

    def add_attempt(self, attempt: RateLimitAttempt) -> None:
        cutoff = datetime.now(timezone.utc) - self._retention
        self._attempts = [a for a in self._attempts if a.attempted_at >= cutoff]
        self._attempts.append(attempt)

    def list_attempts(self, key: str, since: datetime) -> list[RateLimitAttempt]:
        return [a for a in self._attempts if a.key == key and a.attempted_at >= since]

    def list_attempts_by_ip(self, ip_address: str, since: datetime) -> list[RateLimitAttempt]:
        return [
            a for a in self._attempts
            if a.ip_address == ip_address and a.attempted_at >= since
        ]

    def clear_failures(self, key: str) -> None:
        self._attempts = [a for a in self._attempts if a.key != key or a.success]

    def block_ip(self, block: BlockedIp) -> None:
        self._blocks[block.ip_address] = block

    def get_block(self, ip_address: str, now: datetime) -> Optional[BlockedIp]:
        block = self._blocks.get(ip_address)
        if block and block.blocked_until > now:
            return block
        return None


class SupabaseAttemptStore(BaseRepository[RateLimitAttempt]):
    """Attempt store backed by Supabase tables."""

    def add_attempt(self, attempt: RateLimitAttempt) -> None:
        self._db.table("rate_limit_attempts").insert(
            attempt.model_dump(mode="json")
        ).execute()

    def list_attempts(self, key: str, since: datetime) -> list[RateLimitAttempt]:
        result = (
            self._db.table("rate_limit_attempts")
            .select("*")
            .eq("key", key)
            .gte("attempted_at", since.isoformat())
            .order("attempted_at")
            .execute()
        )
        return [RateLimitAttempt.model_validate(row) for row in result.data or []]

    def list_attempts_by_ip(self, ip_address: str, since: datetime) -> list[RateLimitAttempt]:
        result = (
            self._db.table("rate_limit_attempts")
            .select("*")
            .eq("ip_address", ip_address)
            .gte("attempted_at", since.isoformat())
            .order("attempted_at")
            .execute()
        )
        return [RateLimitAttempt.model_validate(row) for row in result.data or []]

    def clear_failures(self, key: str) -> None:
        (
            self._db.table("rate_limit_attempts")
            .delete()
            .eq("key", key)
            .eq("success", False)
            .execute()
        )

    def block_ip(self, block: BlockedIp) -> None:
        self._db.table("blocked_ips").upsert(
            block.model_dump(mode="json"), on_conflict="ip_address"
        ).execute()

    def get_block(self, ip_address: str, now: datetime) -> Optional[BlockedIp]:
        result = (
            self._db.table("blocked_ips")
            .select("*")
            .eq("ip_address", ip_address)
            .gt("blocked_until", now.isoformat())
            .limit(1)
            .execute()
        )
        return self._first(result.data, BlockedIp)
