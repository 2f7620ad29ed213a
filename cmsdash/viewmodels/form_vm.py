"""Add/edit modal state shared by both screens."""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

MODE_CLOSED = "closed"
MODE_CREATE = "create"
MODE_EDIT = "edit"


class RecordFormVM:
    """Owns the edit buffer and the modal's open/closed state.

    The buffer is a scratch copy: nothing written here reaches the live list
    or the store until the screen submits it. ``editing_id`` is set exactly
    while the modal is open in edit mode.
    """

    def __init__(self, field_names: Sequence[str]) -> None:
        if not field_names:
            raise ValueError("RecordFormVM requires at least one field.")
        self.field_names = tuple(field_names)
        self.is_open = False
        self.editing_id: Optional[str] = None
        self._buffer: Dict[str, str] = self._blank()

    @property
    def mode(self) -> str:
        if not self.is_open:
            return MODE_CLOSED
        return MODE_EDIT if self.editing_id is not None else MODE_CREATE

    @property
    def values(self) -> Dict[str, str]:
        """Copy of the current buffer."""
        return dict(self._buffer)

    def open_create(self) -> None:
        self._buffer = self._blank()
        self.editing_id = None
        self.is_open = True

    def open_edit(self, record_id: str, values: Mapping[str, object]) -> None:
        if not record_id:
            raise ValueError("open_edit requires a record id.")
        buffer = self._blank()
        for name in self.field_names:
            value = values.get(name)
            buffer[name] = "" if value is None else str(value)
        self._buffer = buffer
        self.editing_id = str(record_id)
        self.is_open = True

    def set_field(self, name: str, value: object) -> None:
        if name not in self.field_names:
            raise KeyError(f"Unknown form field: {name}")
        self._buffer[name] = "" if value is None else str(value)

    def close(self) -> None:
        """Close the modal and discard the buffer."""
        self.is_open = False
        self.editing_id = None
        self._buffer = self._blank()

    def _blank(self) -> Dict[str, str]:
        return {name: "" for name in self.field_names}


__all__ = ["MODE_CLOSED", "MODE_CREATE", "MODE_EDIT", "RecordFormVM"]
