"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from jsonpreview.services.settings import PipelineSettings, SettingsStore


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")

    assert store.load() == PipelineSettings()


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"
    original = PipelineSettings(
        worker_enabled=False,
        worker_timeout=3.5,
        worker_start_method="spawn",
        preview_debounce_seconds=0.5,
        success_message="Looks good",
        debug_logging=True,
    )

    saved_path = SettingsStore(path).save(original)

    assert saved_path == path
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1
    assert SettingsStore(path).load() == original


def test_unknown_fields_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"worker_timeout": 2.0, "theme": "dark", "version": 1}), encoding="utf-8")

    settings = SettingsStore(path).load()

    assert settings.worker_timeout == 2.0


def test_invalid_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    assert SettingsStore(path).load() == PipelineSettings()


def test_runtime_overrides_apply_before_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONPREVIEW_WORKER_TIMEOUT", "9")
    store = SettingsStore(tmp_path / "settings.json")

    settings = store.load(overrides={"worker_timeout": 1.0, "success_message": "OK", "unknown": 1})

    assert settings.worker_timeout == 9.0
    assert settings.success_message == "OK"


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSONPREVIEW_WORKER_ENABLED", "off")
    monkeypatch.setenv("JSONPREVIEW_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("JSONPREVIEW_WORKER_START_METHOD", "Spawn")
    monkeypatch.setenv("JSONPREVIEW_PREVIEW_DEBOUNCE", "not-a-number")

    settings = SettingsStore(tmp_path / "settings.json").load()

    assert settings.worker_enabled is False
    assert settings.debug_logging is True
    assert settings.worker_start_method == "spawn"
    assert settings.preview_debounce_seconds == PipelineSettings().preview_debounce_seconds


def test_invalid_values_are_normalized(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"worker_timeout": -1, "worker_start_method": "teleport", "preview_debounce_seconds": -2}),
        encoding="utf-8",
    )

    settings = SettingsStore(path).load()

    assert settings.worker_timeout == PipelineSettings().worker_timeout
    assert settings.worker_start_method is None
    assert settings.preview_debounce_seconds == 0.0
