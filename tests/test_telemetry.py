"""Tests for in-process telemetry events."""

from __future__ import annotations

from typing import Any

from jsonpreview.services import telemetry
from jsonpreview.services.telemetry import InMemoryEventSink


def test_emit_delivers_payload_to_listeners() -> None:
    received: list[dict[str, Any]] = []
    telemetry.register_event_listener("json_worker.timeout", received.append)
    try:
        telemetry.emit("json_worker.timeout", {"action": "parse"})
    finally:
        telemetry.unregister_event_listener("json_worker.timeout", received.append)

    assert received == [{"event": "json_worker.timeout", "action": "parse"}]


def test_failing_listener_does_not_break_emitter() -> None:
    received: list[dict[str, Any]] = []

    def broken(_payload: dict[str, Any]) -> None:
        raise RuntimeError("listener failure")

    telemetry.register_event_listener("json_preview.render", broken)
    telemetry.register_event_listener("json_preview.render", received.append)
    try:
        telemetry.emit("json_preview.render", {"status": "success"})
    finally:
        telemetry.unregister_event_listener("json_preview.render", broken)
        telemetry.unregister_event_listener("json_preview.render", received.append)

    assert received == [{"event": "json_preview.render", "status": "success"}]


def test_unregistered_listener_stops_receiving() -> None:
    received: list[dict[str, Any]] = []
    telemetry.register_event_listener("json_worker.unavailable", received.append)
    telemetry.register_event_listener("json_worker.unavailable", received.append)
    telemetry.unregister_event_listener("json_worker.unavailable", received.append)

    telemetry.emit("json_worker.unavailable", {"reason": "gone"})

    assert received == []


def test_event_sink_records_attached_events() -> None:
    sink = InMemoryEventSink(capacity=10).attach([telemetry.WORKER_TIMEOUT, telemetry.PREVIEW_RENDER])
    try:
        for index in range(12):
            telemetry.emit(telemetry.PREVIEW_RENDER, {"index": index})
        telemetry.emit(telemetry.WORKER_TIMEOUT, {"action": "parse"})
        telemetry.emit(telemetry.WORKER_UNAVAILABLE, {"reason": "not attached"})
    finally:
        sink.detach()
    telemetry.emit(telemetry.WORKER_TIMEOUT, {"action": "after detach"})

    assert len(sink) == 10
    assert sink.tail(1) == [{"event": telemetry.WORKER_TIMEOUT, "action": "parse"}]
    assert [event["index"] for event in sink.tail(event_name=telemetry.PREVIEW_RENDER)][-1] == 11
    assert sink.tail(event_name=telemetry.WORKER_UNAVAILABLE) == []
