"""Domain value objects for documents and the two record variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

ALBUMS_COLLECTION = "albums"
USERS_COLLECTION = "users"


@dataclass(frozen=True)
class Document:
    """One document as pushed by the store: server id plus raw fields."""

    id: str
    """Backend-assigned identifier, unique within its collection."""
    fields: Mapping[str, Any] = field(default_factory=dict)
    """Field values decoded into plain Python types."""

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("Document id must be a non-empty string.")
        object.__setattr__(self, "fields", dict(self.fields or {}))

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)


@dataclass(frozen=True)
class Album:
    """Album card record."""

    id: str
    """Backend-assigned identifier."""
    name: str = ""
    """Display name entered by the admin."""
    timestamp: Optional[datetime] = None
    """Creation time written once by the create call."""

    @classmethod
    def from_document(cls, doc: Document) -> "Album":
        stamp = doc.get("timestamp")
        return cls(
            id=doc.id,
            name=_as_text(doc.get("name")),
            timestamp=stamp if isinstance(stamp, datetime) else None,
        )

    def editable_fields(self) -> Dict[str, str]:
        return {"name": self.name}


@dataclass(frozen=True)
class User:
    """User table record."""

    id: str
    """Backend-assigned identifier."""
    name: str = ""
    email: str = ""
    password: str = ""

    @classmethod
    def from_document(cls, doc: Document) -> "User":
        return cls(
            id=doc.id,
            name=_as_text(doc.get("name")),
            email=_as_text(doc.get("email")),
            password=_as_text(doc.get("password")),
        )

    def editable_fields(self) -> Dict[str, str]:
        return {"name": self.name, "email": self.email, "password": self.password}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


__all__ = [
    "ALBUMS_COLLECTION",
    "USERS_COLLECTION",
    "Album",
    "Document",
    "User",
]
