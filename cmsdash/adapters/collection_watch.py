"""Polling watch that turns a list endpoint into a snapshot stream.

The REST surface has no push channel, so one daemon thread per subscription
lists the collection on an interval and forwards the full ordered result
whenever it differs from the previous one. The first fetch is always
forwarded. A failed fetch is reported once through ``on_error`` and ends the
watch; reconnecting is the subscriber's decision.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Callable, List, Optional, Sequence, Tuple

from cmsdash.domain.entities import Document

Fetch = Callable[[], List[Document]]


def snapshot_signature(docs: Sequence[Document]) -> Tuple[Tuple[str, str], ...]:
    """Order-sensitive fingerprint of a document list."""
    return tuple(
        (doc.id, json.dumps(doc.fields, sort_keys=True, default=str)) for doc in docs
    )


class CollectionWatch:
    """Background poller for one collection subscription."""

    def __init__(
        self,
        fetch: Fetch,
        on_change: Callable[[Sequence[Document]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        *,
        interval_s: float = 1.0,
        name: str = "collection",
    ) -> None:
        self._log = logging.getLogger(__name__)
        self._fetch = fetch
        self._on_change = on_change
        self._on_error = on_error
        self.interval_s = max(0.05, float(interval_s))
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_signature: Optional[Tuple[Tuple[str, str], ...]] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> "CollectionWatch":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(
            target=self._loop,
            name=f"watch-{self.name}",
            daemon=True,
        )
        self._thread.start()
        self._log.debug("Watch started for %s (interval %.2fs)", self.name, self.interval_s)
        return self

    def stop(self) -> None:
        """Stop polling without waiting for the thread.

        Safe to call repeatedly, from any thread, including the UI event
        loop. A fetch already in flight finishes in the background and its
        result is discarded.
        """
        if self._stop.is_set():
            return
        self._stop.set()
        self._log.debug("Watch stopped for %s", self.name)

    __call__ = stop

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the watch thread to exit. Returns True once it has."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return thread is None
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def poll_once(self) -> bool:
        """Fetch once and forward the snapshot if it changed. Returns True if forwarded."""
        docs = self._fetch()
        signature = snapshot_signature(docs)
        if signature == self._last_signature:
            return False
        self._last_signature = signature
        if self._stop.is_set():
            return False
        self._on_change(list(docs))
        return True

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as exc:
                if self._stop.is_set():
                    break
                self._log.warning("Watch for %s failed: %s", self.name, exc)
                self._stop.set()
                if self._on_error is not None:
                    self._on_error(exc)
                break
            if self._stop.wait(timeout=self.interval_s):
                break


__all__ = ["CollectionWatch", "snapshot_signature"]
