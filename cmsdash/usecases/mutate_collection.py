"""Fire-and-forget create/update/delete against one collection.

The dispatcher never touches local list state: the subscriber's next push is
the only way a mutation becomes visible. Each issued request gets a
``MutationTicket`` whose ``token`` correlates the eventual outcome, so
callers can wait for acknowledgement without assuming it coincides with the
snapshot that contains the change.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from cmsdash.domain.errors import OperationError
from cmsdash.domain.ports import CollectionName, DocumentId, DocumentStorePort

from .error_mapping import map_api_error

Validator = Callable[[str, Mapping[str, Any]], Dict[str, Any]]
Clock = Callable[[], float]

OP_CREATE = "create"
OP_UPDATE = "update"
OP_DELETE = "delete"

_SETTLED_MEMORY = 256


def _noop(*_: object, **__: object) -> None:
    """Default no-op callback used for hooks."""


def _passthrough(_: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(fields)


@dataclass(frozen=True)
class MutationTicket:
    """Handle for one issued mutation."""

    token: str
    """Correlation token, unique per issued request."""
    operation: str
    collection: CollectionName
    doc_id: Optional[DocumentId]
    """Target id for update/delete; ``None`` for create."""
    fields: Mapping[str, Any] = field(default_factory=dict)
    """Payload sent to the store (empty for delete)."""
    issued_at: float = 0.0
    deadline: Optional[float] = None


@dataclass(frozen=True)
class MutationOutcome:
    """Settled result of a ticket."""

    ticket: MutationTicket
    ok: bool
    doc_id: Optional[DocumentId] = None
    """Id assigned by the store on create, or the target id otherwise."""
    error: Optional[OperationError] = None


@dataclass
class MutationHooks:
    """Callbacks fired once per ticket when it settles."""

    on_success: Callable[[MutationTicket, Optional[DocumentId]], None] = _noop
    on_error: Callable[[MutationTicket, OperationError], None] = _noop
    on_settled: Callable[[MutationOutcome], None] = _noop

    def __post_init__(self) -> None:
        self.on_success = self.on_success or _noop
        self.on_error = self.on_error or _noop
        self.on_settled = self.on_settled or _noop


class MutationDispatcher:
    """Validate, then issue store mutations without waiting for them."""

    def __init__(
        self,
        store: DocumentStorePort,
        collection: CollectionName,
        *,
        validate: Optional[Validator] = None,
        hooks: Optional[MutationHooks] = None,
        executor: Optional[Executor] = None,
        timeout_s: Optional[float] = 30.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.store = store
        self.collection = collection
        self.validate = validate or _passthrough
        self.hooks = hooks or MutationHooks()
        self._owns_executor = executor is None
        self.executor: Executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix=f"mutate-{collection}"
        )
        self.timeout_s = timeout_s if timeout_s and timeout_s > 0 else None
        self.clock = clock
        self._lock = threading.Lock()
        self._pending: Dict[str, MutationTicket] = {}
        self._futures: Dict[str, Future] = {}
        self._settled: "OrderedDict[str, MutationOutcome]" = OrderedDict()
        self._closed = False

    # ------------------------------------------------------------------
    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def busy(self) -> bool:
        return self.in_flight > 0

    def create(self, fields: Mapping[str, Any]) -> MutationTicket:
        """Validate and issue a create.

        Raises ``ValidationError`` without calling the store, and
        ``OperationError`` when the request cannot be issued at all.
        """
        payload = self.validate(OP_CREATE, fields)
        return self._submit(
            OP_CREATE,
            None,
            payload,
            lambda: self.store.create(self.collection, payload),
        )

    def update(self, doc_id: DocumentId, fields: Mapping[str, Any]) -> MutationTicket:
        """Validate and issue an update of ``doc_id``."""
        target = self._require_id(doc_id)
        payload = self.validate(OP_UPDATE, fields)

        def call() -> DocumentId:
            self.store.update(self.collection, target, payload)
            return target

        return self._submit(OP_UPDATE, target, payload, call)

    def delete(self, doc_id: DocumentId) -> MutationTicket:
        """Issue a delete of ``doc_id``; there is no confirmation step."""
        target = self._require_id(doc_id)

        def call() -> DocumentId:
            self.store.delete(self.collection, target)
            return target

        return self._submit(OP_DELETE, target, {}, call)

    def wait(self, ticket: MutationTicket, timeout: Optional[float] = None) -> Optional[MutationOutcome]:
        """Block until ``ticket`` settles and return its outcome.

        Expired tickets return the timeout outcome; ``None`` means the token
        is unknown (or too old to be remembered).
        """
        with self._lock:
            settled = self._settled.get(ticket.token)
            future = self._futures.get(ticket.token)
        if settled is not None:
            return settled
        if future is None:
            return None
        future.result(timeout=timeout)
        with self._lock:
            return self._settled.get(ticket.token)

    def expire_overdue(self) -> int:
        """Settle tickets past their deadline as timed out. Returns how many expired."""
        now = self.clock()
        expired = []
        with self._lock:
            overdue = [
                ticket
                for ticket in self._pending.values()
                if ticket.deadline is not None and now >= ticket.deadline
            ]
            for ticket in overdue:
                self._pending.pop(ticket.token, None)
                future = self._futures.pop(ticket.token, None)
                if future is not None:
                    future.cancel()
                error = OperationError(
                    "REQUEST_TIMEOUT",
                    "Request timed out. Check connection.",
                    operation=ticket.operation,
                )
                outcome = MutationOutcome(ticket=ticket, ok=False, doc_id=ticket.doc_id, error=error)
                self._remember_locked(outcome)
                expired.append(outcome)
        for outcome in expired:
            self._log.warning(
                "%s on %s timed out after %.1fs (token %s)",
                outcome.ticket.operation,
                self.collection,
                self.timeout_s or 0.0,
                outcome.ticket.token,
            )
            self._emit(outcome)
        return len(expired)

    @property
    def closed(self) -> bool:
        return self._closed

    def shutdown(self) -> None:
        """Refuse further mutations and release an owned worker pool."""
        self._closed = True
        if self._owns_executor:
            self.executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _require_id(doc_id: DocumentId) -> DocumentId:
        text = str(doc_id or "").strip()
        if not text:
            raise ValueError("A document id is required for this operation.")
        return text

    def _submit(
        self,
        operation: str,
        doc_id: Optional[DocumentId],
        payload: Mapping[str, Any],
        call: Callable[[], DocumentId],
    ) -> MutationTicket:
        if self._closed:
            raise OperationError(
                "DISPATCHER_CLOSED",
                f"The {self.collection} screen is closed.",
                operation=operation,
            )
        issued_at = self.clock()
        ticket = MutationTicket(
            token=uuid.uuid4().hex,
            operation=operation,
            collection=self.collection,
            doc_id=doc_id,
            fields=dict(payload),
            issued_at=issued_at,
            deadline=issued_at + self.timeout_s if self.timeout_s else None,
        )
        with self._lock:
            self._pending[ticket.token] = ticket
        self._log.debug("Issuing %s on %s (token %s)", operation, self.collection, ticket.token)
        try:
            future = self.executor.submit(self._run, ticket, call)
        except Exception as exc:
            with self._lock:
                self._pending.pop(ticket.token, None)
            self._log.error("Could not issue %s on %s: %s", operation, self.collection, exc)
            error = map_api_error(exc, operation=operation, default_code="SUBMIT_REJECTED")
            if error is exc:
                raise
            raise error from exc
        with self._lock:
            if ticket.token in self._pending:
                self._futures[ticket.token] = future
        return ticket

    def _run(self, ticket: MutationTicket, call: Callable[[], DocumentId]) -> MutationOutcome:
        try:
            doc_id = call()
        except Exception as exc:
            error = map_api_error(exc, operation=ticket.operation)
            self._log.error(
                "%s on %s failed: %s", ticket.operation, self.collection, exc, exc_info=True
            )
            outcome = MutationOutcome(ticket=ticket, ok=False, doc_id=ticket.doc_id, error=error)
        else:
            outcome = MutationOutcome(ticket=ticket, ok=True, doc_id=doc_id)
        with self._lock:
            current = self._pending.pop(ticket.token, None)
            self._futures.pop(ticket.token, None)
            if current is not None:
                self._remember_locked(outcome)
        if current is None:
            # Already settled by expire_overdue(); the late result stays silent.
            self._log.debug("Dropping late %s result (token %s)", ticket.operation, ticket.token)
            return outcome
        self._emit(outcome)
        return outcome

    def _remember_locked(self, outcome: MutationOutcome) -> None:
        """Record ``outcome`` for ``wait``; caller holds ``_lock``."""
        self._settled[outcome.ticket.token] = outcome
        while len(self._settled) > _SETTLED_MEMORY:
            self._settled.popitem(last=False)

    def _emit(self, outcome: MutationOutcome) -> None:
        if outcome.ok:
            self.hooks.on_success(outcome.ticket, outcome.doc_id)
        else:
            assert outcome.error is not None
            self.hooks.on_error(outcome.ticket, outcome.error)
        self.hooks.on_settled(outcome)


__all__ = [
    "MutationDispatcher",
    "MutationHooks",
    "MutationOutcome",
    "MutationTicket",
    "OP_CREATE",
    "OP_DELETE",
    "OP_UPDATE",
]
