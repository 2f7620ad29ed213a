from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import List, Tuple

from cmsdash.adapters.api_errors import ApiServerError
from cmsdash.adapters.memory_store import InMemoryDocumentStore
from cmsdash.domain.entities import Document
from cmsdash.tests.helpers import FakeClock, InlineExecutor, ManualExecutor
from cmsdash.viewmodels.albums_vm import AlbumsScreenVM

STAMP = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _screen(store=None, *, executor=None, clock=None) -> Tuple[AlbumsScreenVM, InMemoryDocumentStore]:
    counter = itertools.count(1)
    store = store or InMemoryDocumentStore(id_factory=lambda: f"a{next(counter)}")
    screen = AlbumsScreenVM(
        store,
        executor=executor or InlineExecutor(),
        clock=clock or FakeClock(),
        timestamp_clock=lambda: STAMP,
    )
    return screen, store


def _messages(screen: AlbumsScreenVM) -> List[Tuple[str, str]]:
    return [(note.level, note.message) for note in screen.notifications.drain()]


def test_loading_until_first_snapshot() -> None:
    screen, _ = _screen()

    assert screen.loading is True
    screen.activate()

    assert screen.loading is False
    assert screen.cards() == []


def test_create_appears_after_push() -> None:
    screen, store = _screen()
    screen.activate()
    before = len(screen.records)

    screen.add()
    screen.form.set_field("name", "Vacation")
    ticket = screen.submit()

    assert ticket is not None
    assert len(screen.records) == before + 1
    album = screen.cards()[0]
    assert (album.name, album.timestamp) == ("Vacation", STAMP)
    assert store.calls[-1] == ("create", "albums", {"name": "Vacation", "timestamp": STAMP})
    assert _messages(screen) == [("success", "Album added successfully!")]
    assert screen.form.is_open is False


def test_blank_create_warns_and_keeps_modal_open() -> None:
    screen, store = _screen()
    screen.activate()

    screen.add()
    ticket = screen.submit()

    assert ticket is None
    assert store.call_count("create") == 0
    assert screen.form.is_open is True
    assert _messages(screen) == [("warning", "Please enter an album name!")]


def test_blank_rename_uses_update_message() -> None:
    screen, store = _screen()
    store.seed("albums", [Document(id="a1", fields={"name": "Vacation"})])
    screen.activate()

    assert screen.edit("a1") is True
    screen.form.set_field("name", "")
    screen.submit()

    assert _messages(screen) == [("warning", "Album name cannot be empty!")]
    assert screen.form.editing_id == "a1"


def test_edit_sends_name_only_and_keeps_timestamp() -> None:
    screen, store = _screen()
    store.seed("albums", [Document(id="a1", fields={"name": "Vacation", "timestamp": STAMP})])
    screen.activate()

    screen.edit("a1")
    assert screen.form.values == {"name": "Vacation"}
    screen.form.set_field("name", "Trip")
    screen.submit()

    assert store.calls[-1] == ("update", "albums", "a1", {"name": "Trip"})
    assert (screen.cards()[0].name, screen.cards()[0].timestamp) == ("Trip", STAMP)
    assert _messages(screen) == [("success", "Album updated successfully!")]


def test_delete_removes_card_after_push() -> None:
    screen, store = _screen()
    store.seed(
        "albums",
        [Document(id="a1", fields={"name": "Vacation"}), Document(id="a2", fields={"name": "Birthday"})],
    )
    screen.activate()

    screen.delete("a1")

    assert [album.id for album in screen.cards()] == ["a2"]
    assert _messages(screen) == [("success", "Album deleted successfully!")]


def test_failed_delete_reports_error_and_keeps_list() -> None:
    screen, store = _screen()
    store.seed(
        "albums",
        [Document(id="a1", fields={"name": "Vacation"}), Document(id="a2", fields={"name": "Birthday"})],
    )
    screen.activate()
    version = screen.records.version
    store.fail_next("delete", ApiServerError("down", status=503))

    screen.delete("a2")

    assert [album.id for album in screen.cards()] == ["a1", "a2"]
    assert screen.records.version == version
    assert _messages(screen) == [("error", "Error deleting album: Store error, try again.")]


def test_edit_of_vanished_album_warns_and_stays_closed() -> None:
    screen, _ = _screen()
    screen.activate()

    assert screen.edit("ghost") is False

    assert screen.form.is_open is False
    assert _messages(screen) == [("warning", "This album no longer exists.")]


def test_cancel_discards_buffer() -> None:
    screen, store = _screen()
    store.seed("albums", [Document(id="a1", fields={"name": "Vacation"})])
    screen.activate()
    screen.edit("a1")
    screen.form.set_field("name", "Draft")

    screen.cancel()
    screen.add()

    assert screen.form.values == {"name": ""}
    assert screen.form.editing_id is None


def test_submit_while_closed_is_ignored() -> None:
    screen, store = _screen()
    screen.activate()

    assert screen.submit() is None
    assert store.call_count("create") == 0


def test_overdue_update_reports_timeout() -> None:
    executor = ManualExecutor()
    clock = FakeClock()
    screen, store = _screen(executor=executor, clock=clock)
    store.seed("albums", [Document(id="a1", fields={"name": "Vacation"})])
    screen.activate()

    screen.edit("a1")
    screen.form.set_field("name", "Trip")
    screen.submit()
    clock.advance(31)
    screen.tick()
    executor.run_all()

    assert _messages(screen) == [
        ("error", "Error updating album: Request timed out. Check connection.")
    ]


def test_scope_releases_subscription() -> None:
    screen, store = _screen()

    with screen:
        assert screen.active is True
        assert store.subscriber_count("albums") == 1

    assert screen.active is False
    assert store.subscriber_count("albums") == 0
