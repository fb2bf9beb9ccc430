"""Tests for the session lifecycle manager."""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from modules.identity.models import IssuedSession
from modules.sessions import (
    REMEMBER_ME_CEILING,
    SESSION_CEILING,
    AsyncioScheduler,
    ExpiryReason,
    ManualScheduler,
    SessionLifecycleManager,
    SessionState,
    TimerHandle,
)

START = datetime(2026, 1, 1, tzinfo=timezone.utc)


def issue(at: datetime, ttl: timedelta = timedelta(hours=1), name: str = "r") -> IssuedSession:
    return IssuedSession(
        access_token=f"access-{name}",
        refresh_token=f"refresh-{name}",
        expires_in=int(ttl.total_seconds()),
        expires_at=int((at + ttl).timestamp()),
    )


class Recorder:
    """Collects lifecycle callbacks with the scheduler time they fired at."""

    def __init__(self, scheduler: ManualScheduler):
        self.scheduler = scheduler
        self.refreshes: list[datetime] = []
        self.warnings: list[tuple[datetime, timedelta]] = []
        self.expired: list[tuple[datetime, ExpiryReason]] = []
        self.fail_refresh = False

    async def refresh(self, refresh_token: str) -> IssuedSession:
        self.refreshes.append(self.scheduler.now)
        if self.fail_refresh:
            raise RuntimeError("refresh rejected")
        return issue(self.scheduler.now, name=str(len(self.refreshes)))

    def on_warning(self, remaining: timedelta) -> None:
        self.warnings.append((self.scheduler.now, remaining))

    async def on_expired(self, reason: ExpiryReason) -> None:
        self.expired.append((self.scheduler.now, reason))


@pytest.fixture
def scheduler():
    return ManualScheduler(START)


@pytest.fixture
def recorder(scheduler):
    return Recorder(scheduler)


@pytest.fixture
def manager(scheduler, recorder):
    async def reauthenticate(code: str) -> IssuedSession:
        assert code == "123456"
        return issue(scheduler.now, name="reverified")

    return SessionLifecycleManager(
        scheduler,
        clock=scheduler.clock,
        refresh=recorder.refresh,
        on_warning=recorder.on_warning,
        on_expired=recorder.on_expired,
        reauthenticate=reauthenticate,
    )


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refreshes_five_minutes_before_expiry(self, scheduler, recorder, manager):
        manager.start(issue(START))

        await scheduler.advance(timedelta(minutes=54))
        assert recorder.refreshes == []

        await scheduler.advance(timedelta(minutes=1))
        assert recorder.refreshes == [START + timedelta(minutes=55)]
        assert manager.session.refresh_token == "refresh-1"
        assert manager.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_keeps_refreshing_new_tokens(self, scheduler, recorder, manager):
        manager.start(issue(START))

        await scheduler.advance(timedelta(hours=3))

        assert recorder.refreshes[:3] == [
            START + timedelta(minutes=55),
            START + timedelta(minutes=110),
            START + timedelta(minutes=165),
        ]
        assert recorder.expired == []

    @pytest.mark.asyncio
    async def test_failed_refresh_ends_session(self, scheduler, recorder, manager):
        recorder.fail_refresh = True
        manager.start(issue(START))

        await scheduler.advance(timedelta(hours=1))

        assert recorder.expired == [(START + timedelta(minutes=55), ExpiryReason.REFRESH_FAILED)]
        assert manager.state == SessionState.EXPIRED
        assert manager.session is None
        assert manager.timers == []

    @pytest.mark.asyncio
    async def test_without_refresh_token_expiry_ends_session(self, scheduler, recorder):
        manager = SessionLifecycleManager(
            scheduler, clock=scheduler.clock, on_expired=recorder.on_expired
        )
        manager.start(issue(START))

        await scheduler.advance(timedelta(hours=2))

        assert recorder.expired == [(START + timedelta(hours=1), ExpiryReason.TOKEN_EXPIRED)]


class TestCeiling:
    @pytest.mark.asyncio
    async def test_warns_then_logs_out_at_48_hours(self, scheduler, recorder, manager):
        manager.start(issue(START))

        await scheduler.advance(SESSION_CEILING - timedelta(minutes=11))
        assert recorder.warnings == []
        assert manager.state == SessionState.ACTIVE

        await scheduler.advance(timedelta(minutes=1))
        assert recorder.warnings == [
            (START + SESSION_CEILING - timedelta(minutes=10), timedelta(minutes=10))
        ]
        assert manager.state == SessionState.WARNING

        await scheduler.advance(timedelta(minutes=10))
        assert recorder.expired == [(START + SESSION_CEILING, ExpiryReason.CEILING_REACHED)]
        assert manager.state == SessionState.EXPIRED

    @pytest.mark.asyncio
    async def test_remember_me_extends_ceiling(self, scheduler, recorder, manager):
        manager.start(issue(START), remember_me=True)
        assert manager.deadline == START + REMEMBER_ME_CEILING

        await scheduler.advance(SESSION_CEILING + timedelta(hours=1))
        assert recorder.expired == []

        await scheduler.advance(REMEMBER_ME_CEILING)
        assert recorder.expired == [(START + REMEMBER_ME_CEILING, ExpiryReason.CEILING_REACHED)]
        assert len(recorder.warnings) == 1

    @pytest.mark.asyncio
    async def test_ceiling_counts_from_sign_in(self, scheduler, recorder, manager):
        signed_in_at = START - timedelta(hours=47)
        manager.start(issue(START), signed_in_at=signed_in_at)

        await scheduler.advance(timedelta(hours=1))

        assert recorder.expired == [(START + timedelta(hours=1), ExpiryReason.CEILING_REACHED)]


class TestReverify:
    @pytest.mark.asyncio
    async def test_reverify_restarts_session_clock(self, scheduler, recorder, manager):
        manager.start(issue(START))
        await scheduler.advance(SESSION_CEILING - timedelta(minutes=10))
        assert manager.state == SessionState.WARNING

        session = await manager.reverify("123456")

        assert session.access_token == "access-reverified"
        assert manager.state == SessionState.ACTIVE
        assert manager.deadline == scheduler.now + SESSION_CEILING

        await scheduler.advance(timedelta(hours=1))
        assert recorder.expired == []

    @pytest.mark.asyncio
    async def test_reverify_requires_callback(self, scheduler):
        manager = SessionLifecycleManager(scheduler, clock=scheduler.clock)
        manager.start(issue(START))

        with pytest.raises(RuntimeError):
            await manager.reverify("123456")


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_cancels_timers_silently(self, scheduler, recorder, manager):
        manager.start(issue(START))
        assert len(manager.timers) == 3

        manager.stop()

        assert manager.timers == []
        assert scheduler.pending == []
        await scheduler.advance(timedelta(days=3))
        assert recorder.refreshes == []
        assert recorder.expired == []
        assert manager.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_start_replaces_previous_session(self, scheduler, recorder, manager):
        manager.start(issue(START))
        manager.start(issue(START, name="second"))

        assert manager.session.access_token == "access-second"
        assert len(scheduler.pending) == 3

    @pytest.mark.asyncio
    async def test_stop_during_refresh_discards_new_token(self, scheduler, recorder):
        async def refresh(refresh_token: str) -> IssuedSession:
            manager.stop()
            return issue(scheduler.now, name="late")

        manager = SessionLifecycleManager(
            scheduler,
            clock=scheduler.clock,
            refresh=refresh,
            on_expired=recorder.on_expired,
        )
        manager.start(issue(START))

        await scheduler.advance(timedelta(minutes=56))

        assert manager.state == SessionState.IDLE
        assert manager.session is None
        assert manager.timers == []
        assert recorder.expired == []

    def test_rescheduling_without_session_is_noop(self, scheduler):
        manager = SessionLifecycleManager(scheduler, clock=scheduler.clock)
        manager._schedule_token_timers()
        assert manager.timers == []
        assert scheduler.pending == []


class TestTimerHandle:
    def test_cancel_is_idempotent(self):
        cancel = MagicMock()
        handle = TimerHandle(START, cancel)

        handle.cancel()
        handle.cancel()

        assert handle.cancelled
        cancel.assert_called_once()


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_runs_coroutine_callbacks(self):
        fired = asyncio.Event()

        async def callback():
            fired.set()

        scheduler = AsyncioScheduler()
        scheduler.call_at(datetime.now(timezone.utc), callback)

        await asyncio.wait_for(fired.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_cancelled_callback_does_not_run(self):
        calls = []
        scheduler = AsyncioScheduler()
        handle = scheduler.call_at(
            datetime.now(timezone.utc) + timedelta(milliseconds=20), lambda: calls.append(1)
        )

        handle.cancel()
        await asyncio.sleep(0.05)

        assert calls == []
