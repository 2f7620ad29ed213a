"""NiceGUI runtime orchestration for the dashboard.

This module composes settings, the app controller and screen viewmodels for
the web pages. One instance lives per process; each page build opens its own
screen and closes it when the client disconnects.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Set

from cmsdash.app.controller import AppController
from cmsdash.app.settings import DashboardSettings, load_settings
from cmsdash.domain.ports import DocumentStorePort
from cmsdash.utils.logging import apply_preferences
from cmsdash.viewmodels.albums_vm import AlbumsScreenVM
from cmsdash.viewmodels.collection_screen_vm import CollectionScreenVM
from cmsdash.viewmodels.users_vm import UsersScreenVM

LOGGER = logging.getLogger(__name__)


class WebRuntime:
    """Orchestration state used by NiceGUI views."""

    def __init__(
        self,
        settings: Optional[DashboardSettings] = None,
        *,
        store: Optional[DocumentStorePort] = None,
    ) -> None:
        self.settings = settings or load_settings()
        apply_preferences(self.settings.debug_logging)
        self.controller = AppController(self.settings, store=store)
        self.status_message = "Ready."
        self._screens: Set[CollectionScreenVM] = set()

    # ------------------------------------------------------------------
    # Basic projections
    # ------------------------------------------------------------------
    def settings_payload(self) -> Dict[str, Any]:
        payload = self.settings.to_dict()
        if payload.get("api_key"):
            payload["api_key"] = "***"
        if payload.get("id_token"):
            payload["id_token"] = "***"
        return payload

    @property
    def open_screens(self) -> int:
        return len(self._screens)

    def ensure_store(self) -> bool:
        if self.controller.ensure_ready():
            return True
        self.status_message = self.controller.last_error or "Document store is not configured."
        return False

    # ------------------------------------------------------------------
    # Screen lifecycle
    # ------------------------------------------------------------------
    def open_albums(self) -> Optional[AlbumsScreenVM]:
        if not self.ensure_store():
            return None
        screen = self.controller.build_albums_screen()
        self._activate(screen)
        return screen

    def open_users(self) -> Optional[UsersScreenVM]:
        if not self.ensure_store():
            return None
        screen = self.controller.build_users_screen()
        self._activate(screen)
        return screen

    def close_screen(self, screen: CollectionScreenVM) -> None:
        if screen not in self._screens:
            return
        self._screens.discard(screen)
        screen.close()
        LOGGER.debug("Closed %s screen (%d open)", screen.COLLECTION, len(self._screens))

    def shutdown(self) -> None:
        for screen in list(self._screens):
            self.close_screen(screen)

    def _activate(self, screen: CollectionScreenVM) -> None:
        screen.activate()
        self._screens.add(screen)
        self.status_message = "Ready."
        LOGGER.debug("Opened %s screen (%d open)", screen.COLLECTION, len(self._screens))


__all__ = ["WebRuntime"]
