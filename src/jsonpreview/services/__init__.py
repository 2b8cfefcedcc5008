"""Service layer helpers (settings, telemetry)."""

from .settings import PipelineSettings, SettingsStore
from .telemetry import emit, register_event_listener, unregister_event_listener

__all__ = [
    "PipelineSettings",
    "SettingsStore",
    "emit",
    "register_event_listener",
    "unregister_event_listener",
]
