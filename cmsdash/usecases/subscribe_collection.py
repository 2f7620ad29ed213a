"""Live collection subscription with scoped lifecycle and reconnect backoff."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from cmsdash.domain.entities import Document
from cmsdash.domain.errors import OperationError
from cmsdash.domain.live_list import LiveList
from cmsdash.domain.ports import CollectionName, DocumentStorePort, SchedulerPort, Unsubscribe

from .error_mapping import map_api_error

T = TypeVar("T")

STATUS_IDLE = "idle"
STATUS_LIVE = "live"
STATUS_LOST = "lost"
STATUS_RECONNECTING = "reconnecting"
STATUS_STOPPED = "stopped"


def _noop(*_: object, **__: object) -> None:
    """Default no-op callback used for hooks."""


@dataclass(frozen=True)
class ReconnectPolicy:
    """Exponential backoff for re-opening a failed subscription."""

    initial_delay_ms: int = 1000
    factor: float = 2.0
    max_delay_ms: int = 30000
    max_attempts: Optional[int] = None
    """``None`` keeps retrying forever."""

    def delay_for(self, attempt: int) -> int:
        """Delay before reconnect ``attempt`` (1-based)."""
        step = max(1, int(attempt)) - 1
        delay = float(self.initial_delay_ms) * (float(self.factor) ** step)
        return int(min(float(self.max_delay_ms), delay))

    def allows(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt <= self.max_attempts


class CollectionSubscriber(Generic[T]):
    """Keeps one ``LiveList`` in sync with one collection.

    ``start``/``stop`` bracket the screen scope: exactly one subscription is
    open while active and it is released exactly once. Each push replaces the
    list wholesale. Stream failures flip ``sync_lost`` and schedule a
    reconnect through the injected scheduler.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        collection: CollectionName,
        target: LiveList[T],
        *,
        project: Callable[[Document], T],
        scheduler: Optional[SchedulerPort] = None,
        policy: Optional[ReconnectPolicy] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.store = store
        self.collection = collection
        self.target = target
        self.project = project
        self.scheduler = scheduler
        self.policy = policy or ReconnectPolicy()
        self.on_status = on_status or _noop
        self._lock = threading.RLock()
        self._handle: Optional[Unsubscribe] = None
        self._generation = 0
        self._active = False
        self.attempts = 0
        self.status = STATUS_IDLE
        self.last_error: Optional[OperationError] = None

    # ------------------------------------------------------------------
    @property
    def active(self) -> bool:
        return self._active

    @property
    def sync_lost(self) -> bool:
        return self.status in (STATUS_LOST, STATUS_RECONNECTING)

    @property
    def _schedule_key(self) -> str:
        return f"resubscribe:{self.collection}"

    def start(self) -> None:
        with self._lock:
            if self._active:
                return
            self._active = True
            self.attempts = 0
        self._log.info("Subscribing to %s", self.collection)
        self._open()

    def stop(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            self._generation += 1
        if self.scheduler is not None:
            self.scheduler.cancel(self._schedule_key)
        self._release()
        self._set_status(STATUS_STOPPED)
        self._log.info("Unsubscribed from %s", self.collection)

    def resubscribe(self) -> None:
        """Drop the current stream (if any) and open a fresh one now."""
        with self._lock:
            if not self._active:
                return
            self._generation += 1
            self.attempts = 0
        if self.scheduler is not None:
            self.scheduler.cancel(self._schedule_key)
        self._release()
        self._open()

    def __enter__(self) -> "CollectionSubscriber[T]":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _open(self) -> None:
        with self._lock:
            if not self._active:
                return
            generation = self._generation

        def on_change(docs: Sequence[Document]) -> None:
            self._on_push(generation, docs)

        def on_error(exc: Exception) -> None:
            self._on_stream_error(generation, exc)

        try:
            handle = self.store.subscribe(self.collection, on_change, on_error)
        except Exception as exc:
            self._on_stream_error(generation, exc)
            return
        with self._lock:
            stale = generation != self._generation or not self._active
            if not stale:
                self._handle = handle
        if stale:
            handle()

    def _release(self) -> None:
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle()
        except Exception:
            self._log.exception("Failed to release subscription for %s", self.collection)

    def _on_push(self, generation: int, docs: Sequence[Document]) -> None:
        with self._lock:
            if generation != self._generation or not self._active:
                return
            self.attempts = 0
            self.last_error = None
        self.target.replace(self.project(doc) for doc in docs)
        self._set_status(STATUS_LIVE)

    def _on_stream_error(self, generation: int, exc: Exception) -> None:
        with self._lock:
            if generation != self._generation or not self._active:
                return
            self._generation += 1
            self.attempts += 1
            attempt = self.attempts
            self.last_error = map_api_error(exc, operation="subscribe", default_code="SYNC_LOST")
        self._log.warning("Subscription to %s lost: %s", self.collection, exc)
        self._release()
        if self.scheduler is None or not self.policy.allows(attempt):
            self._set_status(STATUS_LOST)
            return
        delay = self.policy.delay_for(attempt)
        self._log.info(
            "Reconnecting to %s in %d ms (attempt %d)", self.collection, delay, attempt
        )
        self._set_status(STATUS_RECONNECTING)
        self.scheduler.schedule(self._schedule_key, delay, self._open)

    def _set_status(self, status: str) -> None:
        if status == self.status:
            return
        self.status = status
        self.on_status(status)


__all__ = [
    "CollectionSubscriber",
    "ReconnectPolicy",
    "STATUS_IDLE",
    "STATUS_LIVE",
    "STATUS_LOST",
    "STATUS_RECONNECTING",
    "STATUS_STOPPED",
]
