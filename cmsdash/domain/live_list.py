"""Observable list state mirroring the latest collection snapshot."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Dict, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T")
Listener = Callable[[Tuple[T, ...]], None]


class LiveList(Generic[T]):
    """Ordered records replaced wholesale on every push.

    Items live in an immutable tuple that is swapped in one assignment, so a
    reader always sees either the previous or the next snapshot, never a mix.
    ``version`` increases by one per replacement and lets pollers detect
    changes cheaply.
    """

    def __init__(self) -> None:
        self._log = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._items: Tuple[T, ...] = ()
        self._version = 0
        self._listeners: Dict[int, Listener] = {}
        self._ids = itertools.count(1)

    @property
    def version(self) -> int:
        return self._version

    @property
    def received(self) -> bool:
        """True once at least one snapshot has been applied."""
        return self._version > 0

    def snapshot(self) -> Tuple[T, ...]:
        return self._items

    def replace(self, items: Iterable[T]) -> int:
        """Swap in a new snapshot and notify listeners. Returns the new version."""
        new_items = tuple(items)
        with self._lock:
            self._items = new_items
            self._version += 1
            version = self._version
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(new_items)
            except Exception:
                self._log.exception("LiveList listener failed")
        return version

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable removes it (idempotent)."""
        key = next(self._ids)
        with self._lock:
            self._listeners[key] = listener

        def _remove() -> None:
            with self._lock:
                self._listeners.pop(key, None)

        return _remove

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        for item in self._items:
            if predicate(item):
                return item
        return None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)


__all__ = ["LiveList"]
