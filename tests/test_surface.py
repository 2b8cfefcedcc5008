"""Tests for the headless preview surfaces."""

from __future__ import annotations

from jsonpreview.preview.surface import (
    PreviewBuffer,
    StatusIndicator,
    StatusLabel,
    TextBuffer,
    set_validation_status,
    status_icon,
)


def test_status_icons_follow_status_kind() -> None:
    assert status_icon("success") == "check_circle"
    assert status_icon("warning") == "info"
    assert status_icon("error") == "error"
    assert status_icon("unexpected") == "error"


def test_status_label_clears_icon_for_empty_message() -> None:
    label = StatusLabel()

    set_validation_status(label, status="warning", message="Check input")
    assert (label.status, label.message, label.icon) == ("warning", "Check input", "info")

    set_validation_status(label, status="success", message="")
    assert label.icon == ""
    assert label.state == ("success", "")


def test_set_validation_status_without_indicator_is_noop() -> None:
    set_validation_status(None, status="error", message="ignored")


def test_preview_buffer_counts_writes() -> None:
    buffer = PreviewBuffer("start")

    buffer.value = "next"

    assert buffer.value == "next"
    assert buffer.write_count == 1
    assert isinstance(buffer, TextBuffer)
    assert isinstance(StatusLabel(), StatusIndicator)
