"""Thread-safe queue of transient user notifications.

Mutation hooks fire on worker threads; the page drains the queue from its UI
timer so toasts are always raised in the page's client context.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

LEVEL_SUCCESS = "success"
LEVEL_INFO = "info"
LEVEL_WARNING = "warning"
LEVEL_ERROR = "error"

LEVELS = (LEVEL_SUCCESS, LEVEL_INFO, LEVEL_WARNING, LEVEL_ERROR)

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    token: Optional[str] = None
    """Correlation token of the mutation that produced it, if any."""


class NotificationCenter:
    """FIFO of notifications shared by one screen and its page."""

    def __init__(self, max_pending: int = 100) -> None:
        self._lock = threading.Lock()
        self._queue: Deque[Notification] = deque(maxlen=max_pending)
        self.dropped = 0
        """Notifications evicted before the page drained them."""

    def push(self, level: str, message: str, *, token: Optional[str] = None) -> Notification:
        if level not in LEVELS:
            raise ValueError(f"Unknown notification level: {level!r}")
        note = Notification(level=level, message=str(message), token=token)
        evicted: Optional[Notification] = None
        with self._lock:
            if len(self._queue) == self._queue.maxlen:
                evicted = self._queue[0]
                self.dropped += 1
            self._queue.append(note)
        if evicted is not None:
            _log.warning(
                "Notification queue full; dropped undelivered %s: %s", evicted.level, evicted.message
            )
        return note

    def success(self, message: str, *, token: Optional[str] = None) -> Notification:
        return self.push(LEVEL_SUCCESS, message, token=token)

    def info(self, message: str, *, token: Optional[str] = None) -> Notification:
        return self.push(LEVEL_INFO, message, token=token)

    def warning(self, message: str, *, token: Optional[str] = None) -> Notification:
        return self.push(LEVEL_WARNING, message, token=token)

    def error(self, message: str, *, token: Optional[str] = None) -> Notification:
        return self.push(LEVEL_ERROR, message, token=token)

    def drain(self) -> List[Notification]:
        """Remove and return everything queued so far, oldest first."""
        with self._lock:
            items = list(self._queue)
            self._queue.clear()
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)


__all__ = [
    "LEVEL_ERROR",
    "LEVEL_INFO",
    "LEVEL_SUCCESS",
    "LEVEL_WARNING",
    "Notification",
    "NotificationCenter",
]
