"""NiceGUI entrypoint for the dashboard web runtime."""

from __future__ import annotations

import argparse
import os
from typing import Any, Callable, List, Optional

from nicegui import Client, ui

from cmsdash.app.settings import BACKENDS, load_settings
from cmsdash.utils.logging import configure_root
from cmsdash.viewmodels.albums_vm import AlbumsScreenVM
from cmsdash.viewmodels.collection_screen_vm import CollectionScreenVM
from cmsdash.viewmodels.users_vm import UsersScreenVM
from cmsdash.web_ui.runtime import WebRuntime
from cmsdash.web_ui.viewmodels import (
    USER_COLUMNS,
    USERS_EMPTY_TEXT,
    AlbumCard,
    ScreenFingerprint,
    WebPagination,
    dialog_text,
    notify_type,
)

REFRESH_INTERVAL_S = 0.25

_USER_ACTIONS_SLOT = r"""
<q-td :props="props">
  <q-btn flat dense color="primary" icon="edit" label="Edit"
         @click="() => $parent.$emit('edit', props.row)" />
  <q-btn flat dense color="negative" icon="delete" label="Delete"
         @click="() => $parent.$emit('delete', props.row)" />
</q-td>
"""


def _install_theme() -> None:
    """Install global CSS/theme tokens for the web runtime."""
    ui.add_head_html(
        """
<style>
:root {
  --cms-grad-a: #3b82f6;
  --cms-grad-b: #9333ea;
  --cms-card: rgba(255, 255, 255, 0.94);
  --cms-accent: #ff6347;
}
.cms-page {
  min-height: 100vh;
  padding: 24px 16px;
  background: linear-gradient(to right, var(--cms-grad-a), var(--cms-grad-b));
}
.cms-title { color: white; font-weight: 700; }
.cms-card {
  background: var(--cms-card);
  border-radius: 10px;
  border-left: 8px solid var(--cms-accent);
  transition: transform 300ms ease;
}
.cms-card:hover { transform: scale(1.05); }
</style>
        """
    )


def _notify_error(exc: Exception) -> None:
    """Render exceptions as concise NiceGUI toasts."""
    ui.notify(str(exc), type="negative", close_button="OK")


def _invoke(action: Callable[[], Any], *refreshers: Callable[[], None]) -> None:
    try:
        action()
    except Exception as exc:
        _notify_error(exc)
        return
    for refresh in refreshers:
        refresh()


def _drain_notifications(screen: CollectionScreenVM) -> None:
    for note in screen.notifications.drain():
        ui.notify(note.message, type=notify_type(note.level))


def _after_submit(screen: CollectionScreenVM, dialog: ui.dialog) -> None:
    _drain_notifications(screen)
    if not screen.form.is_open:
        dialog.close()


def _render_unavailable(runtime: WebRuntime) -> None:
    with ui.column().classes("cms-page w-full items-center"):
        ui.label("Document store unavailable").classes("text-h5 cms-title")
        ui.label(runtime.status_message).classes("text-white")
        ui.link("Back", "/").classes("text-white")


def _render_sync_banner(screen: CollectionScreenVM, on_reconnect: Callable[[], None]) -> None:
    if not screen.sync_lost:
        return
    detail = screen.sync_error or "The live connection to the store was interrupted."
    with ui.row().classes("w-full items-center q-pa-sm bg-red-1 rounded-borders q-mb-md"):
        ui.icon("cloud_off", color="negative")
        ui.label(f"Sync lost: {detail}").classes("text-negative")
        ui.space()
        ui.button("Reconnect", on_click=on_reconnect, color="negative").props("flat dense")


def _bind_screen(
    runtime: WebRuntime,
    client: Client,
    screen: CollectionScreenVM,
    dialog: ui.dialog,
    refreshers: List[Callable[[], None]],
) -> None:
    """Poll ``screen`` from a page timer and keep the widgets in step with it."""
    last: List[Optional[ScreenFingerprint]] = [None]

    def sync() -> None:
        screen.tick()
        _drain_notifications(screen)
        current = ScreenFingerprint.of(screen)
        if current == last[0]:
            return
        last[0] = current
        for refresh in refreshers:
            refresh()
        if screen.form.is_open and not dialog.value:
            dialog.open()
        elif not screen.form.is_open and dialog.value:
            dialog.close()

    ui.timer(REFRESH_INTERVAL_S, sync)
    client.on_disconnect(lambda: runtime.close_screen(screen))


def _build_ui(runtime: WebRuntime) -> None:
    """Register the NiceGUI pages for the runtime."""

    @ui.page("/")
    def index() -> None:
        with ui.column().classes("cms-page w-full items-center q-gutter-md"):
            ui.label("Dashboard").classes("text-h4 cms-title")
            with ui.row().classes("q-gutter-md"):
                ui.button("Albums", on_click=lambda: ui.navigate.to("/albums"), color="amber")
                ui.button("Users", on_click=lambda: ui.navigate.to("/users"), color="amber")

    @ui.page("/albums")
    def albums_page(client: Client) -> None:
        screen = runtime.open_albums()
        if screen is None:
            _render_unavailable(runtime)
            return
        _albums_screen(runtime, client, screen)

    @ui.page("/users")
    def users_page(client: Client) -> None:
        screen = runtime.open_users()
        if screen is None:
            _render_unavailable(runtime)
            return
        _users_screen(runtime, client, screen)


def _albums_screen(runtime: WebRuntime, client: Client, screen: AlbumsScreenVM) -> None:
    dialog = ui.dialog().on("hide", lambda: screen.cancel())

    @ui.refreshable
    def render_dialog() -> None:
        title, submit_label = dialog_text(screen.COLLECTION, screen.form.mode)
        with ui.card().classes("w-96"):
            ui.label(title).classes("text-h6")
            ui.input(
                placeholder="Enter album name",
                value=screen.form.values.get("name", ""),
                on_change=lambda e: screen.form.set_field("name", e.value),
            ).props("outlined dense autofocus").classes("w-full")
            with ui.row().classes("w-full justify-end q-gutter-sm"):
                ui.button("Cancel", on_click=cancel).props("flat")
                ui.button(submit_label, on_click=submit, color="positive")

    @ui.refreshable
    def render_body() -> None:
        _render_sync_banner(screen, reconnect)
        if screen.loading:
            with ui.row().classes("w-full justify-center items-center").style("height: 60vh"):
                ui.spinner(size="xl", color="white")
            return
        with ui.element("div").classes("grid grid-cols-1 sm:grid-cols-2 md:grid-cols-3 gap-6 w-full"):
            for card in (AlbumCard.from_album(album) for album in screen.cards()):
                with ui.card().classes("cms-card q-pa-md"):
                    ui.label(card.name).classes("text-h6 text-grey-9")
                    if card.created:
                        ui.label(card.created).classes("text-caption text-grey-7")
                    with ui.row().classes("w-full justify-between q-mt-sm"):
                        ui.button(
                            "Edit", icon="edit", color="primary",
                            on_click=lambda _, rid=card.id: edit(rid),
                        ).props("dense")
                        ui.button(
                            "Delete", icon="delete", color="negative",
                            on_click=lambda _, rid=card.id: delete(rid),
                        ).props("dense")

    def refresh_all() -> None:
        render_body.refresh()
        render_dialog.refresh()

    def add() -> None:
        _invoke(screen.add, render_dialog.refresh, dialog.open)

    def edit(record_id: str) -> None:
        _invoke(lambda: screen.edit(record_id) and dialog.open(), render_dialog.refresh)

    def delete(record_id: str) -> None:
        _invoke(lambda: screen.delete(record_id))

    def cancel() -> None:
        _invoke(screen.cancel, dialog.close)

    def submit() -> None:
        _invoke(screen.submit, lambda: _after_submit(screen, dialog))

    def reconnect() -> None:
        _invoke(screen.resync, render_body.refresh)

    with dialog:
        render_dialog()

    with ui.column().classes("cms-page w-full"):
        with ui.row().classes("w-full justify-between items-center q-mb-md"):
            ui.label("Albums List").classes("text-h5 cms-title")
            ui.button("Add Album", on_click=add, color="amber")
        render_body()

    _bind_screen(runtime, client, screen, dialog, [refresh_all])


def _users_screen(runtime: WebRuntime, client: Client, screen: UsersScreenVM) -> None:
    pagination = WebPagination()
    dialog = ui.dialog().on("hide", lambda: screen.cancel())

    @ui.refreshable
    def render_dialog() -> None:
        title, submit_label = dialog_text(screen.COLLECTION, screen.form.mode)
        values = screen.form.values
        with ui.card().classes("w-96"):
            ui.label(title).classes("text-h6")
            ui.input(
                "Name", value=values.get("name", ""),
                on_change=lambda e: screen.form.set_field("name", e.value),
            ).props("outlined dense").classes("w-full")
            ui.input(
                "Email", value=values.get("email", ""),
                on_change=lambda e: screen.form.set_field("email", e.value),
            ).props("outlined dense type=email").classes("w-full")
            ui.input(
                "Password", value=values.get("password", ""), password=True,
                on_change=lambda e: screen.form.set_field("password", e.value),
            ).props("outlined dense").classes("w-full")
            with ui.row().classes("w-full justify-end q-gutter-sm"):
                ui.button("Cancel", on_click=cancel).props("flat")
                submit_button = ui.button(submit_label, on_click=submit, color="primary")
                if screen.loading:
                    submit_button.props("loading").disable()

    @ui.refreshable
    def render_body() -> None:
        _render_sync_banner(screen, reconnect)
        table = ui.table(
            columns=USER_COLUMNS,
            rows=screen.rows(),
            row_key="id",
            pagination=pagination.to_props(),
        ).classes("w-full")
        table.props(f'no-data-label="{USERS_EMPTY_TEXT}"')
        table.props(f':rows-per-page-options="{pagination.options}"')
        if screen.loading:
            table.props("loading")
        table.add_slot("body-cell-actions", _USER_ACTIONS_SLOT)
        table.on("edit", lambda e: edit(str(e.args.get("id", ""))))
        table.on("delete", lambda e: delete(str(e.args.get("id", ""))))
        table.on("update:pagination", lambda e: pagination.apply(e.args))

    def refresh_all() -> None:
        render_body.refresh()
        render_dialog.refresh()

    def add() -> None:
        _invoke(screen.add, render_dialog.refresh, dialog.open)

    def edit(record_id: str) -> None:
        _invoke(lambda: screen.edit(record_id) and dialog.open(), render_dialog.refresh)

    def delete(record_id: str) -> None:
        _invoke(lambda: screen.delete(record_id), render_body.refresh)

    def cancel() -> None:
        _invoke(screen.cancel, dialog.close)

    def submit() -> None:
        _invoke(screen.submit, lambda: _after_submit(screen, dialog))

    def reconnect() -> None:
        _invoke(screen.resync, render_body.refresh)

    with dialog:
        render_dialog()

    with ui.column().classes("cms-page w-full"):
        with ui.row().classes("w-full justify-between items-center q-mb-md"):
            ui.label("Users").classes("text-h5 cms-title")
            ui.button("Add User", on_click=add, color="amber")
        render_body()

    _bind_screen(runtime, client, screen, dialog, [refresh_all])


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI args for web runtime startup."""
    parser = argparse.ArgumentParser(description="Run the dashboard NiceGUI web UI.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--settings", default=None, help="Path to a JSON settings file.")
    parser.add_argument("--backend", choices=BACKENDS, default=None)
    parser.add_argument("--reload", action="store_true")
    parser.add_argument("--smoke-test", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint for the NiceGUI runtime."""
    args = _parse_args(argv)
    configure_root()
    settings = load_settings(args.settings)
    if args.backend:
        settings.backend = args.backend
    runtime = WebRuntime(settings)
    if args.smoke_test:
        ready = runtime.ensure_store()
        payload = runtime.settings_payload()
        print("web-smoke-ok", payload["backend"], "ready" if ready else runtime.status_message)
        return
    _install_theme()
    _build_ui(runtime)
    ui.run(
        host=args.host,
        port=args.port,
        title="Dashboard",
        reload=args.reload,
        show=False,
        storage_secret=os.environ.get("CMSDASH_WEB_STORAGE_SECRET", "cmsdash-web-ui-secret"),
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
