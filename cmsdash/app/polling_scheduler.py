"""Scheduler helper that owns reconnect timers for live subscriptions.

Callers pass ``schedule`` and ``cancel`` callables (thread timers by default)
into this class so timer state is tracked in one place and cancelled safely
when a screen stops or the app shuts down. Implements ``SchedulerPort``.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

ScheduleFn = Callable[[int, Callable[[], None]], str]
CancelFn = Callable[[str], None]


@dataclass
class TimerHandle:
    """Timer token associated with a single key.

    Attributes:
        key: Channel key (for example ``resubscribe:albums``).
        token: Token returned by the underlying schedule function.
    """
    key: str
    token: str


class ThreadTimers:
    """``schedule``/``cancel`` pair backed by ``threading.Timer`` daemons."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: Dict[str, threading.Timer] = {}
        self._ids = itertools.count(1)

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> str:
        token = f"timer-{next(self._ids)}"

        def fire() -> None:
            with self._lock:
                self._timers.pop(token, None)
            callback()

        timer = threading.Timer(max(0, delay_ms) / 1000.0, fire)
        timer.daemon = True
        with self._lock:
            self._timers[token] = timer
        timer.start()
        return token

    def cancel(self, token: str) -> None:
        with self._lock:
            timer = self._timers.pop(token, None)
        if timer is not None:
            timer.cancel()

    def pending(self) -> int:
        with self._lock:
            return len(self._timers)


class RetryScheduler:
    """Manage keyed one-shot timers; rescheduling a key replaces its timer."""

    def __init__(
        self,
        schedule: Optional[ScheduleFn] = None,
        cancel: Optional[CancelFn] = None,
    ) -> None:
        """Store schedule/cancel functions and initialize the handle registry.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.

        Both default to a private ``ThreadTimers`` instance.
        """
        if (schedule is None) != (cancel is None):
            raise ValueError("schedule and cancel must be provided together.")
        if schedule is None:
            timers = ThreadTimers()
            schedule, cancel = timers.schedule, timers.cancel
        self._log = logging.getLogger(__name__)
        self._schedule: ScheduleFn = schedule
        self._cancel: CancelFn = cancel  # type: ignore[assignment]
        self._lock = threading.RLock()
        self._handles: Dict[str, TimerHandle] = {}

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None:
        """Schedule or reschedule ``callback`` under ``key``.

        Args:
            key: Timer channel key.
            delay_ms: Delay in milliseconds before callback execution.
            callback: Callback to execute once.
        """
        delay = max(1, int(delay_ms))
        self.cancel(key)
        handle = TimerHandle(key=key, token="")

        def fire() -> None:
            with self._lock:
                if self._handles.get(key) is handle:
                    self._handles.pop(key, None)
            callback()

        # A concurrent cancel(key) must never observe the placeholder token.
        with self._lock:
            self._handles[key] = handle
            handle.token = self._schedule(delay, fire)

    def cancel(self, key: str) -> None:
        """Cancel a pending timer for ``key`` (no-op when none is pending)."""
        with self._lock:
            handle = self._handles.pop(key, None)
        if not handle:
            return
        try:
            self._cancel(handle.token)
        except Exception:
            self._log.debug("Cancel of %s failed", key, exc_info=True)

    def cancel_all(self) -> None:
        """Cancel all pending timers across all keys."""
        with self._lock:
            keys = list(self._handles.keys())
        for key in keys:
            self.cancel(key)

    def handle_for(self, key: str) -> Optional[TimerHandle]:
        """Return the current handle for a key, if scheduled."""
        with self._lock:
            return self._handles.get(key)


__all__ = ["RetryScheduler", "ThreadTimers", "TimerHandle"]
