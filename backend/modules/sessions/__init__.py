"""
Session lifecycle module.

Client-side timers that refresh, warn about and end a signed-in session.

Public API:
- SessionLifecycleManager: Owns the timers for one session
- AsyncioScheduler / ManualScheduler: Timer backends
- TimerHandle: Cancellable scheduled callback
"""

from .manager import (
    REFRESH_LEAD,
    REMEMBER_ME_CEILING,
    SESSION_CEILING,
    WARNING_LEAD,
    ExpiryReason,
    SessionLifecycleManager,
    SessionState,
)
from .scheduler import AsyncioScheduler, IScheduler, ManualScheduler, TimerHandle

__all__ = [
    # Manager
    "SessionLifecycleManager",
    "SessionState",
    "ExpiryReason",
    "REFRESH_LEAD",
    "WARNING_LEAD",
    "SESSION_CEILING",
    "REMEMBER_ME_CEILING",
    # Schedulers
    "IScheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "TimerHandle",
]
