from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence

from .entities import Document

CollectionName = str
DocumentId = str
Fields = Dict[str, Any]

OnSnapshot = Callable[[Sequence[Document]], None]
OnStreamError = Callable[[Exception], None]


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str, meta: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.meta = dict(meta or {})


# ---- Ports (Hexagonal boundaries) ----
class Unsubscribe(Protocol):
    """Handle returned by ``subscribe``; calling it stops the pushes."""

    def __call__(self) -> None: ...


class DocumentStorePort(Protocol):
    """Subscribe/create/update/delete against a hosted document store.

    ``subscribe`` pushes the full ordered document set of the collection on
    every change. Stream failures are reported through ``on_error``; after
    that the subscription delivers nothing more.
    """

    def subscribe(
        self,
        collection: CollectionName,
        on_change: OnSnapshot,
        on_error: Optional[OnStreamError] = None,
    ) -> Unsubscribe: ...
    def create(self, collection: CollectionName, fields: Mapping[str, Any]) -> DocumentId: ...
    def update(
        self, collection: CollectionName, doc_id: DocumentId, fields: Mapping[str, Any]
    ) -> None: ...
    def delete(self, collection: CollectionName, doc_id: DocumentId) -> None: ...


class SchedulerPort(Protocol):
    """Keyed one-shot timers (reconnect backoff)."""

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None: ...
    def cancel(self, key: str) -> None: ...
