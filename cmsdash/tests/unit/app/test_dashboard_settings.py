from __future__ import annotations

import json
import logging

import pytest

from cmsdash.adapters.firestore_rest import DEFAULT_BASE_URL
from cmsdash.app.settings import BACKEND_FIRESTORE, DashboardSettings, load_settings


def test_defaults_without_file_or_env(tmp_path) -> None:
    settings = load_settings(str(tmp_path / "missing.json"), environ={})

    assert settings == DashboardSettings()
    assert settings.backend == "memory"
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.is_valid() is True


def test_env_overrides_file(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"backend": "firestore", "project_id": "from-file", "retries": 4}),
        encoding="utf-8",
    )

    settings = load_settings(
        str(path),
        environ={
            "CMSDASH_PROJECT_ID": "from-env",
            "CMSDASH_WATCH_INTERVAL_MS": "500",
            "CMSDASH_DEBUG": "yes",
            "CMSDASH_API_KEY": "",
        },
    )

    assert settings.backend == BACKEND_FIRESTORE
    assert settings.project_id == "from-env"
    assert settings.retries == 4
    assert settings.watch_interval_ms == 500
    assert settings.debug_logging is True
    assert settings.api_key == ""


def test_bad_values_keep_defaults_and_warn(caplog: pytest.LogCaptureFixture) -> None:
    settings = DashboardSettings()

    settings.apply_dict(
        {"backend": "mongo", "retries": "many", "request_timeout_s": -1, "unknown": 1}
    )

    assert settings.backend == "memory"
    assert settings.retries == 2
    assert settings.request_timeout_s == 10
    assert "Ignoring setting backend" in caplog.text
    assert any(record.levelno == logging.WARNING for record in caplog.records)


def test_firestore_backend_requires_project_id() -> None:
    settings = DashboardSettings(backend="firestore")

    assert settings.is_valid() is False
    settings.apply_dict({"project_id": "  demo  "})
    assert settings.project_id == "demo"
    assert settings.is_valid() is True


def test_non_object_file_is_rejected(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(["memory"]), encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(str(path), environ={})


def test_to_dict_round_trips() -> None:
    original = DashboardSettings(backend="firestore", project_id="demo", mutation_timeout_s=5)

    copy = DashboardSettings()
    copy.apply_dict(original.to_dict())

    assert copy == original
