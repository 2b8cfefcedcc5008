"""Settings dataclass and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = ["PipelineSettings", "SettingsStore", "VALID_START_METHODS"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".jsonpreview"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "JSONPREVIEW_WORKER_START_METHOD": "worker_start_method",
    "JSONPREVIEW_LOG_DIR": "log_dir",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "JSONPREVIEW_WORKER_ENABLED": "worker_enabled",
    "JSONPREVIEW_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "JSONPREVIEW_WORKER_TIMEOUT": "worker_timeout",
    "JSONPREVIEW_PREVIEW_DEBOUNCE": "preview_debounce_seconds",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
VALID_START_METHODS: tuple[str, ...] = ("fork", "forkserver", "spawn")
_DEFAULT_WORKER_TIMEOUT = 7.0
_DEFAULT_PREVIEW_DEBOUNCE = 0.36


@dataclass(slots=True)
class PipelineSettings:
    """User-configurable settings for the JSON worker and preview pipeline."""

    worker_enabled: bool = True
    worker_timeout: float = _DEFAULT_WORKER_TIMEOUT
    worker_start_method: str | None = None
    preview_debounce_seconds: float = _DEFAULT_PREVIEW_DEBOUNCE
    success_message: str = "Valid JSON"
    error_message: str = "Invalid JSON output."
    debug_logging: bool = False
    log_dir: str | None = None


class SettingsStore:
    """Persistence adapter for :class:`PipelineSettings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> PipelineSettings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = PipelineSettings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = PipelineSettings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = PipelineSettings()

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")
        settings = self._apply_env_overrides(settings)
        return _normalize(settings)

    def save(self, settings: PipelineSettings) -> Path:
        """Persist settings to disk with atomic file writes."""

        data: Dict[str, Any] = asdict(settings)
        data["version"] = _SETTINGS_VERSION
        body = json.dumps(data, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: PipelineSettings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> PipelineSettings:
        allowed = {field.name for field in fields(PipelineSettings)}
        filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: PipelineSettings) -> PipelineSettings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(PipelineSettings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _normalize(settings: PipelineSettings) -> PipelineSettings:
    updates: Dict[str, Any] = {}
    method = settings.worker_start_method
    if method is not None:
        normalized = str(method).strip().lower() or None
        if normalized is not None and normalized not in VALID_START_METHODS:
            LOGGER.warning("Ignoring unsupported worker start method %r", method)
            normalized = None
        if normalized != method:
            updates["worker_start_method"] = normalized
    try:
        timeout = float(settings.worker_timeout)
    except (TypeError, ValueError):
        timeout = _DEFAULT_WORKER_TIMEOUT
    if timeout <= 0:
        LOGGER.warning("Worker timeout must be positive; using default")
        timeout = _DEFAULT_WORKER_TIMEOUT
    if timeout != settings.worker_timeout:
        updates["worker_timeout"] = timeout
    try:
        debounce = max(0.0, float(settings.preview_debounce_seconds))
    except (TypeError, ValueError):
        debounce = _DEFAULT_PREVIEW_DEBOUNCE
    if debounce != settings.preview_debounce_seconds:
        updates["preview_debounce_seconds"] = debounce
    return replace(settings, **updates) if updates else settings
