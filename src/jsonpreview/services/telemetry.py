"""In-process telemetry events for the worker client and preview pipeline."""

from __future__ import annotations

import logging
from collections import deque
from threading import Lock
from typing import Any, Callable, Iterable, Mapping

__all__ = [
    "PIPELINE_EVENTS",
    "PREVIEW_RENDER",
    "WORKER_TIMEOUT",
    "WORKER_UNAVAILABLE",
    "InMemoryEventSink",
    "emit",
    "register_event_listener",
    "unregister_event_listener",
]

LOGGER = logging.getLogger(__name__)

WORKER_UNAVAILABLE = "json_worker.unavailable"
WORKER_TIMEOUT = "json_worker.timeout"
PREVIEW_RENDER = "json_preview.render"
PIPELINE_EVENTS: tuple[str, ...] = (WORKER_UNAVAILABLE, WORKER_TIMEOUT, PREVIEW_RENDER)

EventListener = Callable[[dict[str, Any]], None]

_EVENT_LISTENERS: dict[str, list[EventListener]] = {}
_LISTENER_LOCK = Lock()


def register_event_listener(event_name: str, callback: EventListener) -> None:
    """Register a callback invoked whenever :func:`emit` fires *event_name*."""

    if not event_name or callback is None:
        return
    with _LISTENER_LOCK:
        listeners = _EVENT_LISTENERS.setdefault(event_name, [])
        if callback not in listeners:
            listeners.append(callback)


def unregister_event_listener(event_name: str, callback: EventListener) -> None:
    with _LISTENER_LOCK:
        listeners = _EVENT_LISTENERS.get(event_name)
        if not listeners or callback not in listeners:
            return
        listeners.remove(callback)
        if not listeners:
            del _EVENT_LISTENERS[event_name]


def emit(event_name: str, payload: Mapping[str, Any] | None = None) -> None:
    """Broadcast a structured telemetry event to in-process listeners.

    Listeners receive their own copy of ``{"event": event_name, **payload}``;
    a failing listener is logged and skipped.
    """

    if not event_name:
        return
    event_payload: dict[str, Any] = {"event": event_name}
    if payload:
        event_payload.update(payload)
    with _LISTENER_LOCK:
        listeners = list(_EVENT_LISTENERS.get(event_name, ()))
    for callback in listeners:
        try:
            callback(dict(event_payload))
        except Exception:  # pragma: no cover - listeners must not break emitters
            LOGGER.debug("Telemetry listener %s failed", callback, exc_info=True)
    LOGGER.debug("Telemetry emit %s: %s", event_name, event_payload)


class InMemoryEventSink:
    """Ring buffer of recent pipeline events for local inspection and tests."""

    def __init__(self, capacity: int = 200) -> None:
        self._capacity = max(10, capacity)
        self._buffer: deque[dict[str, Any]] = deque(maxlen=self._capacity)
        self._lock = Lock()
        self._subscriptions: list[str] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def attach(self, event_names: Iterable[str] = PIPELINE_EVENTS) -> "InMemoryEventSink":
        for event_name in event_names:
            if event_name in self._subscriptions:
                continue
            register_event_listener(event_name, self.record)
            self._subscriptions.append(event_name)
        return self

    def detach(self) -> None:
        for event_name in self._subscriptions:
            unregister_event_listener(event_name, self.record)
        self._subscriptions.clear()

    def record(self, event: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.append(event)

    def tail(self, limit: int | None = None, *, event_name: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            events = list(self._buffer)
        if event_name is not None:
            events = [event for event in events if event.get("event") == event_name]
        if limit is None or limit >= len(events):
            return events
        return events[-limit:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
