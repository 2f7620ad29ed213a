"""Thin web-facing projections for NiceGUI bindings.

These helpers turn screen viewmodel state into plain dicts and labels for
Quasar components without adding I/O or orchestration logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from cmsdash.domain.entities import Album
from cmsdash.viewmodels.collection_screen_vm import CollectionScreenVM
from cmsdash.viewmodels.form_vm import MODE_EDIT
from cmsdash.viewmodels.users_vm import PAGE_SIZE, PAGE_SIZE_OPTIONS

NOTIFY_TYPES: Dict[str, str] = {
    "success": "positive",
    "warning": "warning",
    "error": "negative",
    "info": "info",
}

USER_COLUMNS: List[Dict[str, Any]] = [
    {"name": "no", "label": "No.", "field": "no", "align": "left"},
    {"name": "name", "label": "Name", "field": "name", "align": "left"},
    {"name": "email", "label": "Email", "field": "email", "align": "left"},
    {"name": "actions", "label": "Actions", "field": "id", "align": "left"},
]

USERS_EMPTY_TEXT = "No users found"

_DIALOG_TEXT: Dict[str, Dict[bool, Tuple[str, str]]] = {
    "albums": {False: ("Add Album", "Add"), True: ("Edit Album", "Save")},
    "users": {False: ("Add New User", "Add"), True: ("Edit User", "Update")},
}


def _as_int(value: Any, default: int) -> int:
    """Convert mixed values to int with deterministic fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def notify_type(level: str) -> str:
    return NOTIFY_TYPES.get(level, "info")


def dialog_text(collection: str, mode: str) -> Tuple[str, str]:
    """Return ``(title, submit label)`` for the add/edit dialog."""
    texts = _DIALOG_TEXT.get(collection) or _DIALOG_TEXT["albums"]
    return texts[mode == MODE_EDIT]


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


@dataclass
class AlbumCard:
    """One album card in the grid."""

    id: str
    name: str
    created: str = ""

    @classmethod
    def from_album(cls, album: Album) -> "AlbumCard":
        return cls(id=album.id, name=album.name, created=format_timestamp(album.timestamp))


@dataclass
class WebPagination:
    """Quasar table pagination state for the users table."""

    rows_per_page: int = PAGE_SIZE
    page: int = 1
    options: List[int] = field(default_factory=lambda: list(PAGE_SIZE_OPTIONS))

    def to_props(self) -> Dict[str, int]:
        return {"rowsPerPage": _as_int(self.rows_per_page, PAGE_SIZE), "page": _as_int(self.page, 1)}

    def apply(self, payload: Any) -> None:
        """Absorb a ``pagination`` update emitted by the table."""
        if not isinstance(payload, dict):
            return
        self.rows_per_page = _as_int(payload.get("rowsPerPage"), self.rows_per_page)
        self.page = max(1, _as_int(payload.get("page"), self.page))


@dataclass(frozen=True)
class ScreenFingerprint:
    """Cheap change detector polled by the page timer."""

    version: int
    status: str
    in_flight: int
    form_mode: str

    @classmethod
    def of(cls, screen: CollectionScreenVM) -> "ScreenFingerprint":
        return cls(
            version=screen.records.version,
            status=screen.subscriber.status,
            in_flight=screen.dispatcher.in_flight,
            form_mode=screen.form.mode,
        )


__all__ = [
    "AlbumCard",
    "NOTIFY_TYPES",
    "ScreenFingerprint",
    "USER_COLUMNS",
    "USERS_EMPTY_TEXT",
    "WebPagination",
    "dialog_text",
    "format_timestamp",
    "notify_type",
]
