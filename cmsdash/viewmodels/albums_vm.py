from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from cmsdash.domain.entities import ALBUMS_COLLECTION, Album, Document
from cmsdash.domain.errors import OperationError
from cmsdash.domain.validation import validate_album

from .collection_screen_vm import CollectionScreenVM

_VERBS = {"create": "adding", "update": "updating", "delete": "deleting"}


class AlbumsScreenVM(CollectionScreenVM[Album]):
    """Album cards: spinner until the first snapshot, one card per album."""

    COLLECTION = ALBUMS_COLLECTION
    FIELDS = ("name",)
    SUCCESS_MESSAGES = {
        "create": "Album added successfully!",
        "update": "Album updated successfully!",
        "delete": "Album deleted successfully!",
    }
    MISSING_RECORD_MESSAGE = "This album no longer exists."

    def __init__(self, *args: Any, timestamp_clock: Optional[Callable[[], datetime]] = None, **kwargs: Any) -> None:
        self.timestamp_clock = timestamp_clock
        super().__init__(*args, **kwargs)

    def project(self, doc: Document) -> Album:
        return Album.from_document(doc)

    def validate(self, operation: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return validate_album(operation, fields, clock=self.timestamp_clock)

    def failure_message(self, operation: str, error: OperationError) -> str:
        verb = _VERBS.get(operation, operation)
        return f"Error {verb} album: {error.message}"

    @property
    def loading(self) -> bool:
        return not self.records.received

    def cards(self) -> List[Album]:
        return list(self.records.snapshot())


__all__ = ["AlbumsScreenVM"]
