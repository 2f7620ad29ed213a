from __future__ import annotations

import itertools
import logging
import secrets
import string
import threading
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterable, List, Mapping, Optional, Tuple

from cmsdash.domain.entities import Document
from cmsdash.domain.ports import (
    CollectionName,
    DocumentId,
    DocumentStorePort,
    OnSnapshot,
    OnStreamError,
    Unsubscribe,
)

from .api_errors import ApiClientError

_ID_ALPHABET = string.ascii_letters + string.digits


def auto_id() -> str:
    """20-character random id in the style of the hosted store."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(20))


@dataclass
class _Listener:
    on_change: OnSnapshot
    on_error: Optional[OnStreamError]


class _Subscription:
    def __init__(self, store: "InMemoryDocumentStore", collection: str, key: int) -> None:
        self._store = store
        self._collection = collection
        self._key = key

    def __call__(self) -> None:
        self._store._drop_listener(self._collection, self._key)


@dataclass
class InMemoryDocumentStore(DocumentStorePort):
    """Offline substitute for ``FirestoreRestAdapter`` with deterministic pushes.

    Subscribers receive the current snapshot on subscribe and after every
    mutation, synchronously on the mutating thread. Documents keep insertion
    order. Every port call is recorded in ``calls``.
    """

    id_factory: Callable[[], str] = auto_id
    calls: List[Tuple[Any, ...]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._log = logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._collections: Dict[CollectionName, "OrderedDict[DocumentId, Dict[str, Any]]"] = {}
        self._listeners: Dict[CollectionName, Dict[int, _Listener]] = {}
        self._failures: Dict[str, Deque[Exception]] = {}
        self._keys = itertools.count(1)

    # ---------- DocumentStorePort ----------

    def subscribe(
        self,
        collection: CollectionName,
        on_change: OnSnapshot,
        on_error: Optional[OnStreamError] = None,
    ) -> Unsubscribe:
        self.calls.append(("subscribe", collection))
        self._raise_if_failing("subscribe")
        key = next(self._keys)
        with self._lock:
            self._listeners.setdefault(collection, {})[key] = _Listener(on_change, on_error)
            docs = self._documents(collection)
        on_change(docs)
        return _Subscription(self, collection, key)

    def create(self, collection: CollectionName, fields: Mapping[str, Any]) -> DocumentId:
        self.calls.append(("create", collection, dict(fields)))
        self._raise_if_failing("create")
        with self._lock:
            docs = self._collections.setdefault(collection, OrderedDict())
            doc_id = self.id_factory()
            while doc_id in docs:
                doc_id = self.id_factory()
            docs[doc_id] = dict(fields)
        self._broadcast(collection)
        return doc_id

    def update(
        self, collection: CollectionName, doc_id: DocumentId, fields: Mapping[str, Any]
    ) -> None:
        self.calls.append(("update", collection, doc_id, dict(fields)))
        self._raise_if_failing("update")
        with self._lock:
            docs = self._collections.get(collection) or {}
            if doc_id not in docs:
                raise ApiClientError(
                    f"update[{collection}/{doc_id}]: No document to update (HTTP 404)",
                    status=404,
                    code="NOT_FOUND",
                    context=f"update[{collection}/{doc_id}]",
                )
            docs[doc_id].update(fields)
        self._broadcast(collection)

    def delete(self, collection: CollectionName, doc_id: DocumentId) -> None:
        self.calls.append(("delete", collection, doc_id))
        self._raise_if_failing("delete")
        with self._lock:
            removed = (self._collections.get(collection) or {}).pop(doc_id, None)
        # Deleting a missing document succeeds without a change to push.
        if removed is not None:
            self._broadcast(collection)

    # ---------- Test helpers ----------

    def seed(self, collection: CollectionName, docs: Iterable[Document]) -> None:
        """Replace the collection contents and push to subscribers."""
        with self._lock:
            self._collections[collection] = OrderedDict(
                (doc.id, dict(doc.fields)) for doc in docs
            )
        self._broadcast(collection)

    def documents(self, collection: CollectionName) -> List[Document]:
        with self._lock:
            return self._documents(collection)

    def fail_next(self, operation: str, exc: Exception) -> None:
        """Make the next ``operation`` call (create/update/delete/subscribe) raise ``exc``."""
        with self._lock:
            self._failures.setdefault(operation, deque()).append(exc)

    def break_stream(self, collection: CollectionName, exc: Exception) -> None:
        """Report ``exc`` to every subscriber of ``collection`` and drop them."""
        with self._lock:
            listeners = list((self._listeners.pop(collection, None) or {}).values())
        for listener in listeners:
            if listener.on_error is not None:
                listener.on_error(exc)

    def subscriber_count(self, collection: CollectionName) -> int:
        with self._lock:
            return len(self._listeners.get(collection) or {})

    def call_count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    # ---------- Internals ----------

    def _documents(self, collection: CollectionName) -> List[Document]:
        docs = self._collections.get(collection) or {}
        return [Document(id=doc_id, fields=dict(values)) for doc_id, values in docs.items()]

    def _broadcast(self, collection: CollectionName) -> None:
        with self._lock:
            listeners = list((self._listeners.get(collection) or {}).values())
            docs = self._documents(collection)
        for listener in listeners:
            listener.on_change(list(docs))

    def _drop_listener(self, collection: CollectionName, key: int) -> None:
        with self._lock:
            (self._listeners.get(collection) or {}).pop(key, None)

    def _raise_if_failing(self, operation: str) -> None:
        with self._lock:
            queue = self._failures.get(operation)
            exc = queue.popleft() if queue else None
        if exc is not None:
            raise exc


__all__ = ["InMemoryDocumentStore", "auto_id"]
