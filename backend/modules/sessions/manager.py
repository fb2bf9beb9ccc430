"""
Client-side session lifecycle.

Keeps a signed-in session alive by refreshing the access token shortly
before it expires, warns before the absolute session ceiling is reached,
and logs the user out at the ceiling or when a refresh fails. The warning
offers re-verification with a fresh one-time code instead of a full logout.
"""

import inspect
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from modules.auth.models import REMEMBER_ME_MAX_AGE_SECONDS, SESSION_MAX_AGE_SECONDS
from modules.identity.models import IssuedSession
from .scheduler import Clock, IScheduler, TimerHandle, utc_now

logger = logging.getLogger(__name__)

REFRESH_LEAD = timedelta(minutes=5)
WARNING_LEAD = timedelta(minutes=10)
SESSION_CEILING = timedelta(seconds=SESSION_MAX_AGE_SECONDS)
REMEMBER_ME_CEILING = timedelta(seconds=REMEMBER_ME_MAX_AGE_SECONDS)

RefreshCallback = Callable[[str], Awaitable[IssuedSession]]
ReauthenticateCallback = Callable[[str], Awaitable[IssuedSession]]


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"


class ExpiryReason(str, Enum):
    CEILING_REACHED = "ceiling_reached"
    TOKEN_EXPIRED = "token_expired"
    REFRESH_FAILED = "refresh_failed"


def token_expiry(session: IssuedSession) -> datetime:
    return datetime.fromtimestamp(session.expires_at, tz=timezone.utc)


async def _invoke(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class SessionLifecycleManager:
    """
    Owns the refresh, warning and logout timers for one signed-in session.

    Args:
        scheduler: Runs timer callbacks
        clock: Current time; should agree with the scheduler's clock
        refresh: Exchanges a refresh token for a new session
        on_warning: Called with the time left before the ceiling
        on_expired: Called with an ExpiryReason once the session ends
        reauthenticate: Exchanges a one-time code for a new session
    """

    def __init__(
        self,
        scheduler: IScheduler,
        clock: Clock = utc_now,
        refresh: Optional[RefreshCallback] = None,
        on_warning: Optional[Callable[[timedelta], Any]] = None,
        on_expired: Optional[Callable[[ExpiryReason], Any]] = None,
        reauthenticate: Optional[ReauthenticateCallback] = None,
    ):
        self._scheduler = scheduler
        self._clock = clock
        self._refresh = refresh
        self._on_warning = on_warning
        self._on_expired = on_expired
        self._reauthenticate = reauthenticate

        self.state = SessionState.IDLE
        self.session: Optional[IssuedSession] = None
        self.remember_me = False
        self.deadline: Optional[datetime] = None

        self._refresh_timer: Optional[TimerHandle] = None
        self._warning_timer: Optional[TimerHandle] = None
        self._logout_timer: Optional[TimerHandle] = None

    @property
    def timers(self) -> list[TimerHandle]:
        return [
            t for t in (self._refresh_timer, self._warning_timer, self._logout_timer)
            if t is not None and not t.cancelled
        ]

    def start(
        self,
        session: IssuedSession,
        remember_me: bool = False,
        signed_in_at: Optional[datetime] = None,
    ) -> None:
        """Begin tracking ``session``, replacing any session already tracked."""
        self.stop()
        signed_in_at = signed_in_at or self._clock()
        ceiling = REMEMBER_ME_CEILING if remember_me else SESSION_CEILING

        self.session = session
        self.remember_me = remember_me
        self.deadline = signed_in_at + ceiling
        self.state = SessionState.ACTIVE

        self._warning_timer = self._scheduler.call_at(self.deadline - WARNING_LEAD, self._warn)
        self._schedule_token_timers()

    def _schedule_token_timers(self) -> None:
        """(Re)schedule the refresh and logout timers for the current token."""
        if self.session is None or self.deadline is None:
            return
        for timer in (self._refresh_timer, self._logout_timer):
            if timer is not None:
                timer.cancel()
        self._refresh_timer = None

        expires = token_expiry(self.session)
        refresh_at = expires - REFRESH_LEAD
        if self._refresh is not None and refresh_at < self.deadline:
            self._refresh_timer = self._scheduler.call_at(refresh_at, self._do_refresh)

        if expires < self.deadline:
            self._logout_timer = self._scheduler.call_at(
                expires, lambda: self._expire(ExpiryReason.TOKEN_EXPIRED)
            )
        else:
            self._logout_timer = self._scheduler.call_at(
                self.deadline, lambda: self._expire(ExpiryReason.CEILING_REACHED)
            )

    async def _do_refresh(self) -> None:
        if self.session is None or self._refresh is None:
            return
        try:
            session = await self._refresh(self.session.refresh_token)
        except Exception:
            logger.warning("Session refresh failed; signing out", exc_info=True)
            await self._expire(ExpiryReason.REFRESH_FAILED)
            return
        if self.state in (SessionState.IDLE, SessionState.EXPIRED):
            return
        self.session = session
        self._schedule_token_timers()

    async def _warn(self) -> None:
        if self.state != SessionState.ACTIVE or self.deadline is None:
            return
        self.state = SessionState.WARNING
        await _invoke(self._on_warning, max(timedelta(0), self.deadline - self._clock()))

    async def _expire(self, reason: ExpiryReason) -> None:
        if self.state in (SessionState.IDLE, SessionState.EXPIRED):
            return
        self._cancel_timers()
        self.state = SessionState.EXPIRED
        self.session = None
        logger.info(f"Session ended: {reason.value}")
        await _invoke(self._on_expired, reason)

    async def reverify(self, code: str) -> IssuedSession:
        """
        Re-authenticate with a one-time code and restart the session clock.

        Raises:
            RuntimeError: If no reauthenticate callback was configured
        """
        if self._reauthenticate is None:
            raise RuntimeError("Re-verification is not configured")
        session = await self._reauthenticate(code)
        self.start(session, self.remember_me, signed_in_at=self._clock())
        return session

    def _cancel_timers(self) -> None:
        for timer in (self._refresh_timer, self._warning_timer, self._logout_timer):
            if timer is not None:
                timer.cancel()
        self._refresh_timer = self._warning_timer = self._logout_timer = None

    def stop(self) -> None:
        """Cancel every timer without signalling expiry."""
        self._cancel_timers()
        self.state = SessionState.IDLE
        self.session = None
        self.deadline = None
