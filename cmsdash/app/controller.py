"""Store and screen wiring for the dashboard runtime.

This module owns lazy construction of the document store adapter and the
shared reconnect scheduler from :class:`cmsdash.app.settings.DashboardSettings`.
Pages call ``ensure_ready`` before building a screen.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..adapters.firestore_rest import FirestoreRestAdapter
from ..adapters.memory_store import InMemoryDocumentStore
from ..domain.ports import DocumentStorePort, SchedulerPort
from ..usecases.subscribe_collection import ReconnectPolicy
from ..viewmodels.albums_vm import AlbumsScreenVM
from ..viewmodels.users_vm import UsersScreenVM
from .polling_scheduler import RetryScheduler
from .settings import BACKEND_FIRESTORE, BACKEND_MEMORY, DashboardSettings


class AppController:
    """Create and cache the store adapter and build screen viewmodels.

    Call chain:
        ``cmsdash.web_ui.runtime.WebRuntime`` creates one instance per
        process. Each page build asks for a fresh screen VM; all screens share
        the store and scheduler.
    """

    def __init__(
        self,
        settings: DashboardSettings,
        *,
        store: Optional[DocumentStorePort] = None,
        scheduler: Optional[SchedulerPort] = None,
    ) -> None:
        """Initialize controller with settings-backed lazy dependencies.

        Args:
            settings: Connection and timing settings.
            store: Prebuilt store, bypassing settings-based construction.
            scheduler: Reconnect scheduler; a thread-timer ``RetryScheduler``
                is created when omitted.
        """
        self._log = logging.getLogger(__name__)
        self.settings = settings
        self._injected_store = store
        self._store: Optional[DocumentStorePort] = store
        self.scheduler: SchedulerPort = scheduler or RetryScheduler()
        self.last_error: Optional[str] = None

    @property
    def store(self) -> Optional[DocumentStorePort]:
        """Return the cached store, if ``ensure_ready`` succeeded."""
        return self._store

    def reset(self) -> None:
        """Drop the cached store so the next ``ensure_ready`` rebuilds it."""
        self._store = self._injected_store
        self.last_error = None

    def ensure_ready(self) -> bool:
        """Ensure a store is available for screens.

        Returns:
            ``True`` when a store exists, ``False`` when settings are
            incomplete (``last_error`` explains why).
        """
        if self._store is not None:
            return True
        backend = self.settings.backend
        if backend == BACKEND_MEMORY:
            self._store = InMemoryDocumentStore()
            self._log.info("Using in-memory document store")
            return True
        if backend == BACKEND_FIRESTORE:
            if not self.settings.project_id.strip():
                self.last_error = "Project id is not configured (CMSDASH_PROJECT_ID)."
                self._log.warning(self.last_error)
                return False
            self._store = FirestoreRestAdapter(
                self.settings.project_id,
                database=self.settings.database,
                base_url=self.settings.base_url,
                api_key=self.settings.api_key or None,
                id_token=self.settings.id_token or None,
                request_timeout_s=self.settings.request_timeout_s,
                retries=self.settings.retries,
                watch_interval_s=self.settings.watch_interval_ms / 1000.0,
            )
            self._log.info(
                "Using Firestore project %s at %s", self.settings.project_id, self.settings.base_url
            )
            return True
        self.last_error = f"Unknown backend: {backend}"
        self._log.warning(self.last_error)
        return False

    def reconnect_policy(self) -> ReconnectPolicy:
        initial = max(1, self.settings.reconnect_initial_ms)
        return ReconnectPolicy(
            initial_delay_ms=initial,
            max_delay_ms=max(initial, self.settings.reconnect_max_ms),
        )

    def build_albums_screen(self) -> AlbumsScreenVM:
        return AlbumsScreenVM(self._require_store(), **self._screen_kwargs())

    def build_users_screen(self) -> UsersScreenVM:
        return UsersScreenVM(self._require_store(), **self._screen_kwargs())

    def _screen_kwargs(self) -> dict:
        return {
            "scheduler": self.scheduler,
            "policy": self.reconnect_policy(),
            "mutation_timeout_s": float(self.settings.mutation_timeout_s) or None,
        }

    def _require_store(self) -> DocumentStorePort:
        if not self.ensure_ready():
            raise RuntimeError(self.last_error or "Document store is not configured.")
        assert self._store is not None
        return self._store


__all__ = ["AppController"]
