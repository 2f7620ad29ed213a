from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cmsdash.domain.entities import Album, Document, User


def test_document_requires_non_empty_id() -> None:
    with pytest.raises(ValueError):
        Document(id=" ", fields={})


def test_document_copies_fields() -> None:
    raw = {"name": "Vacation"}
    doc = Document(id="a1", fields=raw)
    raw["name"] = "changed"

    assert doc.get("name") == "Vacation"
    assert doc.get("missing", "x") == "x"


def test_album_projection_keeps_timestamp_and_defaults_name() -> None:
    stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)

    album = Album.from_document(Document(id="a1", fields={"timestamp": stamp}))

    assert album == Album(id="a1", name="", timestamp=stamp)
    assert album.editable_fields() == {"name": ""}


def test_album_projection_ignores_non_datetime_timestamp() -> None:
    album = Album.from_document(Document(id="a1", fields={"name": "Vacation", "timestamp": "yesterday"}))

    assert album.timestamp is None


def test_user_projection_stringifies_values() -> None:
    user = User.from_document(
        Document(id="u1", fields={"name": "Ann", "email": "ann@x.io", "password": 123456})
    )

    assert user.password == "123456"
    assert user.editable_fields() == {"name": "Ann", "email": "ann@x.io", "password": "123456"}
