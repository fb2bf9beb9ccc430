"""Tests for the in-memory attempt store."""

from datetime import datetime, timedelta, timezone

from modules.ratelimit.interfaces import IAttemptStore
from modules.ratelimit.models import BlockedIp, RateLimitAttempt
from modules.ratelimit.store import DEFAULT_RETENTION, MemoryAttemptStore


def attempt(key="login:1.2.3.4", success=False, ip="1.2.3.4"):
    return RateLimitAttempt(key=key, endpoint="auth:login", ip_address=ip, success=success)


class TestMemoryAttemptStore:
    def test_implements_interface(self):
        assert isinstance(MemoryAttemptStore(), IAttemptStore)

    def test_clear_failures_keeps_successes(self):
        store = MemoryAttemptStore()
        store.add_attempt(attempt(success=False))
        store.add_attempt(attempt(success=True))
        store.add_attempt(attempt(key="other:1.2.3.4", success=False))

        store.clear_failures("login:1.2.3.4")

        since = datetime.now(timezone.utc) - timedelta(minutes=1)
        assert [a.success for a in store.list_attempts("login:1.2.3.4", since)] == [True]
        assert len(store.list_attempts("other:1.2.3.4", since)) == 1

    def test_expired_block_ignored(self):
        store = MemoryAttemptStore()
        now = datetime.now(timezone.utc)
        store.block_ip(BlockedIp(ip_address="1.2.3.4", blocked_until=now - timedelta(seconds=1)))
        assert store.get_block("1.2.3.4", now) is None

    def test_retention_covers_longest_window(self):
        assert DEFAULT_RETENTION >= timedelta(hours=1)

    def test_old_attempts_pruned_on_write(self):
        store = MemoryAttemptStore(retention=timedelta(minutes=10))
        stale = RateLimitAttempt(
            key="login:1.2.3.4", endpoint="auth:login", ip_address="1.2.3.4",
            success=False, attempted_at=datetime.now(timezone.utc) - timedelta(minutes=11),
        )
        store.add_attempt(stale)
        store.add_attempt(attempt())

        since = datetime.now(timezone.utc) - timedelta(days=1)
        assert len(store.list_attempts("login:1.2.3.4", since)) == 1
        assert len(store._attempts) == 1
