"""Dashboard settings: JSON file defaults overlaid with ``CMSDASH_*`` env vars."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from cmsdash.adapters.firestore_rest import DEFAULT_BASE_URL

DEFAULT_SETTINGS_FILE = "cmsdash_settings.json"

BACKEND_MEMORY = "memory"
BACKEND_FIRESTORE = "firestore"
BACKENDS = (BACKEND_MEMORY, BACKEND_FIRESTORE)

_log = logging.getLogger(__name__)


@dataclass
class DashboardSettings:
    """Typed runtime settings for the store connection and screen timing."""

    backend: str = BACKEND_MEMORY
    project_id: str = ""
    database: str = "(default)"
    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    id_token: str = ""
    request_timeout_s: int = 10
    retries: int = 2
    watch_interval_ms: int = 1000
    reconnect_initial_ms: int = 1000
    reconnect_max_ms: int = 30000
    mutation_timeout_s: int = 30
    debug_logging: bool = False

    def is_valid(self) -> bool:
        if self.backend not in BACKENDS:
            return False
        if self.backend == BACKEND_FIRESTORE:
            return bool(self.project_id.strip())
        return True

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Overlay known keys from ``payload``; bad values keep the current one."""
        for entry in fields(self):
            if entry.name not in payload:
                continue
            current = getattr(self, entry.name)
            setattr(self, entry.name, _coerce(entry.name, payload[entry.name], current))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_ENV_VARS: Dict[str, str] = {
    "backend": "CMSDASH_BACKEND",
    "project_id": "CMSDASH_PROJECT_ID",
    "database": "CMSDASH_DATABASE",
    "base_url": "CMSDASH_BASE_URL",
    "api_key": "CMSDASH_API_KEY",
    "id_token": "CMSDASH_ID_TOKEN",
    "request_timeout_s": "CMSDASH_REQUEST_TIMEOUT_S",
    "retries": "CMSDASH_RETRIES",
    "watch_interval_ms": "CMSDASH_WATCH_INTERVAL_MS",
    "reconnect_initial_ms": "CMSDASH_RECONNECT_INITIAL_MS",
    "reconnect_max_ms": "CMSDASH_RECONNECT_MAX_MS",
    "mutation_timeout_s": "CMSDASH_MUTATION_TIMEOUT_S",
    "debug_logging": "CMSDASH_DEBUG",
}


def load_settings(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DashboardSettings:
    """Build settings from ``path`` (missing file = defaults) then ``environ``.

    Args:
        path: JSON settings file; defaults to ``cmsdash_settings.json`` in the
            working directory.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        DashboardSettings: Fully coerced settings.

    Raises:
        ValueError: If the file exists but is not a JSON object.
    """
    settings = DashboardSettings()
    file_path = path or DEFAULT_SETTINGS_FILE
    if os.path.exists(file_path):
        with open(file_path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError(f"{file_path} must contain a JSON object.")
        settings.apply_dict(payload)
        _log.debug("Loaded settings from %s", file_path)

    env = os.environ if environ is None else environ
    overrides = {key: env[var] for key, var in _ENV_VARS.items() if env.get(var) not in (None, "")}
    if overrides:
        settings.apply_dict(overrides)
    return settings


def _coerce(name: str, value: Any, fallback: Any) -> Any:
    try:
        if isinstance(fallback, bool):
            return _coerce_bool(value)
        if isinstance(fallback, int):
            return _coerce_int(name, value)
        return _coerce_str(name, value)
    except ValueError as exc:
        _log.warning("Ignoring setting %s: %s", name, exc)
        return fallback


def _coerce_str(name: str, value: Any) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    if name == "backend":
        text = text.lower()
        if text not in BACKENDS:
            raise ValueError(f"backend must be one of {', '.join(BACKENDS)}.")
    return text


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _coerce_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer.")
    if isinstance(value, (int, float)):
        coerced = int(value)
    elif isinstance(value, str):
        try:
            coerced = int(value.strip())
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name} must be an integer.") from exc
    else:
        raise ValueError(f"{name} must be an integer.")
    if coerced < 0:
        raise ValueError(f"{name} must be non-negative.")
    return coerced


__all__ = [
    "BACKEND_FIRESTORE",
    "BACKEND_MEMORY",
    "DEFAULT_SETTINGS_FILE",
    "DashboardSettings",
    "load_settings",
]
