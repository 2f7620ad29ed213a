"""Shared screen state for one live-synced collection.

A screen VM wires together the four moving parts of an admin screen: the
live record list kept current by ``CollectionSubscriber``, the fire-and-forget
``MutationDispatcher``, the add/edit ``RecordFormVM`` and the
``NotificationCenter`` the page drains. Subclasses supply the collection
name, record projection, validation and user-facing messages.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Sequence, TypeVar

from cmsdash.domain.entities import Document
from cmsdash.domain.errors import OperationError, ValidationError
from cmsdash.domain.live_list import LiveList
from cmsdash.domain.ports import DocumentStorePort, SchedulerPort
from cmsdash.usecases.mutate_collection import (
    MutationDispatcher,
    MutationHooks,
    MutationTicket,
)
from cmsdash.usecases.subscribe_collection import CollectionSubscriber, ReconnectPolicy

from .form_vm import RecordFormVM
from .notifications import NotificationCenter

T = TypeVar("T")


class CollectionScreenVM(Generic[T]):
    """Base class for the Albums and Users screens."""

    COLLECTION: str = ""
    FIELDS: Sequence[str] = ()
    SUCCESS_MESSAGES: Mapping[str, str] = {}
    MISSING_RECORD_MESSAGE = "This record no longer exists."

    def __init__(
        self,
        store: DocumentStorePort,
        *,
        scheduler: Optional[SchedulerPort] = None,
        executor: Optional[Executor] = None,
        policy: Optional[ReconnectPolicy] = None,
        mutation_timeout_s: Optional[float] = 30.0,
        notifications: Optional[NotificationCenter] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not self.COLLECTION:
            raise TypeError(f"{type(self).__name__} must define COLLECTION.")
        self._log = logging.getLogger(__name__)
        self.store = store
        self.records: LiveList[T] = LiveList()
        self.notifications = notifications or NotificationCenter()
        self.form = RecordFormVM(self.FIELDS)
        self.subscriber: CollectionSubscriber[T] = CollectionSubscriber(
            store,
            self.COLLECTION,
            self.records,
            project=self.project,
            scheduler=scheduler,
            policy=policy,
        )
        self.dispatcher = MutationDispatcher(
            store,
            self.COLLECTION,
            validate=self.validate,
            hooks=MutationHooks(on_success=self._on_success, on_error=self._on_error),
            executor=executor,
            timeout_s=mutation_timeout_s,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------
    def project(self, doc: Document) -> T:
        raise NotImplementedError

    def validate(self, operation: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def failure_message(self, operation: str, error: OperationError) -> str:
        raise NotImplementedError

    def success_message(self, operation: str) -> str:
        return self.SUCCESS_MESSAGES.get(operation, "Done.")

    @property
    def loading(self) -> bool:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Screen scope
    # ------------------------------------------------------------------
    @property
    def active(self) -> bool:
        return self.subscriber.active

    def activate(self) -> None:
        if self.closed:
            return
        self.subscriber.start()

    def deactivate(self) -> None:
        self.subscriber.stop()

    def close(self) -> None:
        """Leave the screen for good: stop syncing and release the worker pool."""
        self.deactivate()
        self.dispatcher.shutdown()

    @property
    def closed(self) -> bool:
        return self.dispatcher.closed

    def __enter__(self) -> "CollectionScreenVM[T]":
        self.activate()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def add(self) -> None:
        self.form.open_create()

    def edit(self, record_id: str) -> bool:
        """Open the modal on ``record_id``; warn if it vanished from the list."""
        record = self.records.find(lambda item: getattr(item, "id", None) == record_id)
        if record is None:
            self.notifications.warning(self.MISSING_RECORD_MESSAGE)
            return False
        self.form.open_edit(record.id, record.editable_fields())  # type: ignore[attr-defined]
        return True

    def cancel(self) -> None:
        self.form.close()

    def submit(self) -> Optional[MutationTicket]:
        """Issue create or update from the buffer.

        The modal closes as soon as the request is issued; a validation
        failure leaves it open and raises a warning instead. A closed screen
        issues nothing.
        """
        if self.closed or not self.form.is_open:
            return None
        values = self.form.values
        editing_id = self.form.editing_id
        operation = "update" if editing_id is not None else "create"
        try:
            if editing_id is not None:
                ticket = self.dispatcher.update(editing_id, values)
            else:
                ticket = self.dispatcher.create(values)
        except ValidationError as exc:
            self.notifications.warning(exc.message)
            return None
        except OperationError as exc:
            self._report_rejected(operation, exc)
            return None
        self.form.close()
        return ticket

    def delete(self, record_id: str) -> Optional[MutationTicket]:
        if self.closed:
            return None
        try:
            return self.dispatcher.delete(record_id)
        except OperationError as exc:
            self._report_rejected("delete", exc)
            return None

    def tick(self) -> int:
        """Periodic housekeeping driven by the page timer."""
        return self.dispatcher.expire_overdue()

    # ------------------------------------------------------------------
    # Sync state
    # ------------------------------------------------------------------
    @property
    def sync_lost(self) -> bool:
        return self.subscriber.sync_lost

    @property
    def sync_error(self) -> Optional[str]:
        error = self.subscriber.last_error
        return error.message if error is not None else None

    def resync(self) -> None:
        self.subscriber.resubscribe()

    # ------------------------------------------------------------------
    # Dispatcher hooks (worker threads)
    # ------------------------------------------------------------------
    def _on_success(self, ticket: MutationTicket, _doc_id: Optional[str]) -> None:
        self.notifications.success(self.success_message(ticket.operation), token=ticket.token)

    def _on_error(self, ticket: MutationTicket, error: OperationError) -> None:
        self._log.error(
            "%s on %s failed [%s]: %s", ticket.operation, self.COLLECTION, error.code, error.message
        )
        self.notifications.error(self.failure_message(ticket.operation, error), token=ticket.token)

    def _report_rejected(self, operation: str, error: OperationError) -> None:
        self._log.error(
            "%s on %s was not issued [%s]: %s", operation, self.COLLECTION, error.code, error.message
        )
        self.notifications.error(self.failure_message(operation, error))


__all__ = ["CollectionScreenVM"]
