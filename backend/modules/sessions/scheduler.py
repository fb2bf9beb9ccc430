"""
Timer schedulers for the session lifecycle manager.

Callbacks may be plain functions or coroutine functions. Every scheduling
call returns a TimerHandle that can be cancelled.
"""

import asyncio
import heapq
import inspect
import itertools
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Union[None, Awaitable[None]]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimerHandle:
    """A scheduled callback."""

    def __init__(self, when: datetime, cancel: Optional[Callable[[], Any]] = None):
        self.when = when
        self.cancelled = False
        self._cancel = cancel

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._cancel is not None:
            self._cancel()


@runtime_checkable
class IScheduler(Protocol):
    """Runs callbacks at wall-clock times."""

    def call_at(self, when: datetime, callback: TimerCallback) -> TimerHandle:
        """Schedule ``callback``. Times in the past fire as soon as possible."""
        ...


class AsyncioScheduler:
    """Scheduler on top of the running event loop's ``call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None, clock: Clock = utc_now):
        self._loop = loop
        self._clock = clock
        self._tasks: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_at(self, when: datetime, callback: TimerCallback) -> TimerHandle:
        delay = max(0.0, (when - self._clock()).total_seconds())
        timer = self.loop.call_later(delay, self._run, callback)
        return TimerHandle(when, timer.cancel)

    def _run(self, callback: TimerCallback) -> None:
        result = callback()
        if inspect.isawaitable(result):
            task = self.loop.create_task(result)  # type: ignore[arg-type]
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


class ManualScheduler:
    """
    Scheduler driven by an explicit clock. For tests.

    Time only moves when ``advance`` is awaited; due callbacks run in time
    order and are awaited one at a time.
    """

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or utc_now()
        self._queue: list[tuple[datetime, int, TimerHandle, TimerCallback]] = []
        self._counter = itertools.count()

    def clock(self) -> datetime:
        return self.now

    def call_at(self, when: datetime, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(when)
        heapq.heappush(self._queue, (when, next(self._counter), handle, callback))
        return handle

    @property
    def pending(self) -> list[TimerHandle]:
        return sorted(
            (entry[2] for entry in self._queue if not entry[2].cancelled),
            key=lambda handle: handle.when,
        )

    async def advance(self, delta: timedelta) -> None:
        """Move the clock forward, running every callback that becomes due."""
        target = self.now + delta
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = max(self.now, when)
            handle.cancelled = True
            result = callback()
            if inspect.isawaitable(result):
                await result
        self.now = target
