from __future__ import annotations

import itertools

import pytest

from cmsdash.adapters.api_errors import ApiClientError
from cmsdash.adapters.memory_store import InMemoryDocumentStore, auto_id
from cmsdash.domain.entities import Document


def _store() -> InMemoryDocumentStore:
    counter = itertools.count(1)
    return InMemoryDocumentStore(id_factory=lambda: f"id{next(counter)}")


def test_auto_id_is_twenty_alphanumerics() -> None:
    value = auto_id()

    assert len(value) == 20
    assert value.isalnum()


def test_subscribe_pushes_current_snapshot_immediately() -> None:
    store = _store()
    store.seed("albums", [Document(id="a1", fields={"name": "Vacation"})])
    pushes = []

    store.subscribe("albums", pushes.append)

    assert [[doc.id for doc in push] for push in pushes] == [["a1"]]


def test_mutations_push_full_snapshot_in_insertion_order() -> None:
    store = _store()
    pushes = []
    store.subscribe("albums", pushes.append)

    first = store.create("albums", {"name": "Vacation"})
    second = store.create("albums", {"name": "Birthday"})
    store.update("albums", first, {"name": "Trip"})
    store.delete("albums", second)

    assert [first, second] == ["id1", "id2"]
    assert [[doc.fields["name"] for doc in push] for push in pushes] == [
        [],
        ["Vacation"],
        ["Vacation", "Birthday"],
        ["Trip", "Birthday"],
        ["Trip"],
    ]


def test_update_of_missing_document_is_not_found() -> None:
    store = _store()

    with pytest.raises(ApiClientError) as excinfo:
        store.update("albums", "ghost", {"name": "x"})

    assert excinfo.value.status == 404
    assert excinfo.value.code == "NOT_FOUND"


def test_delete_of_missing_document_is_silent_no_op() -> None:
    store = _store()
    pushes = []
    store.subscribe("albums", pushes.append)

    store.delete("albums", "ghost")

    assert len(pushes) == 1


def test_unsubscribe_stops_pushes_and_is_idempotent() -> None:
    store = _store()
    pushes = []
    handle = store.subscribe("albums", pushes.append)

    handle()
    handle()
    store.create("albums", {"name": "Vacation"})

    assert len(pushes) == 1
    assert store.subscriber_count("albums") == 0


def test_fail_next_raises_once() -> None:
    store = _store()
    store.fail_next("delete", RuntimeError("denied"))

    with pytest.raises(RuntimeError):
        store.delete("albums", "a1")
    store.delete("albums", "a1")

    assert store.call_count("delete") == 2


def test_break_stream_reports_error_and_drops_listeners() -> None:
    store = _store()
    errors = []
    store.subscribe("albums", lambda docs: None, errors.append)

    store.break_stream("albums", RuntimeError("stream gone"))

    assert [str(exc) for exc in errors] == ["stream gone"]
    assert store.subscriber_count("albums") == 0
