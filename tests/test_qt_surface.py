"""Tests for the Qt preview surface adapters on the offscreen platform."""

from __future__ import annotations

import asyncio
import logging

import pytest

qt_widgets = pytest.importorskip("PySide6.QtWidgets")

from jsonpreview.preview.service import render_json_preview  # noqa: E402
from jsonpreview.preview.surface import StatusIndicator, TextBuffer  # noqa: E402
from jsonpreview.ui import qt_surface  # noqa: E402
from jsonpreview.ui.qt_surface import QtStatusIndicator, QtTextBuffer, create_preview_widgets  # noqa: E402


@pytest.fixture(autouse=True)
def _ensure_qapp() -> None:
    app = qt_widgets.QApplication.instance()
    if app is None:  # pragma: no cover - depends on test ordering
        qt_widgets.QApplication([])


def test_text_buffer_wraps_plain_text_edit() -> None:
    editor = qt_widgets.QPlainTextEdit()
    buffer = QtTextBuffer(editor)

    buffer.value = '{\n  "a": 1\n}'

    assert editor.toPlainText() == '{\n  "a": 1\n}'
    assert buffer.value == editor.toPlainText()
    assert isinstance(buffer, TextBuffer)


def test_text_buffer_wraps_line_edit() -> None:
    line = qt_widgets.QLineEdit()
    buffer = QtTextBuffer(line)

    buffer.value = "[]"

    assert line.text() == "[]"


def test_status_indicator_sets_text_and_properties() -> None:
    label = qt_widgets.QLabel()
    indicator = QtStatusIndicator(label)

    indicator.set_status("error", "bad")

    assert isinstance(indicator, StatusIndicator)
    assert label.text() == "bad"
    assert label.toolTip() == "bad"
    assert label.property("status") == "error"
    assert label.property("statusIcon") == "error"

    indicator.set_status("success", "")

    assert label.property("statusIcon") == ""


def test_render_into_qt_widgets() -> None:
    widgets = create_preview_widgets()

    result = asyncio.run(
        render_json_preview(
            preview_area=widgets.buffer,
            status_element=widgets.indicator,
            data={"a": [1]},
            worker_client=None,
        )
    )

    assert result.success
    assert widgets.editor.isReadOnly()
    assert widgets.editor.toPlainText() == '{\n  "a": [\n    1\n  ]\n}'
    assert widgets.status_label.text() == "Valid JSON"
    assert widgets.status_label.property("status") == "success"


def test_preview_widgets_install_qt_log_bridge_once(monkeypatch: pytest.MonkeyPatch) -> None:
    installed: list[object] = []
    monkeypatch.setattr(qt_surface, "_bridge_installed", False)
    monkeypatch.setattr(qt_surface, "qInstallMessageHandler", installed.append)

    create_preview_widgets()
    create_preview_widgets()

    assert installed == [qt_surface._forward_qt_message]
    assert qt_surface.install_qt_log_bridge() is False


def test_qt_messages_are_forwarded_to_logging(caplog: pytest.LogCaptureFixture) -> None:
    from PySide6.QtCore import QtMsgType

    with caplog.at_level(logging.DEBUG, logger="jsonpreview.qt"):
        qt_surface._forward_qt_message(QtMsgType.QtWarningMsg, None, "style sheet parse failed")
        qt_surface._forward_qt_message(QtMsgType.QtDebugMsg, None, "polish")

    assert [(record.levelno, record.getMessage()) for record in caplog.records] == [
        (logging.WARNING, "style sheet parse failed"),
        (logging.DEBUG, "polish"),
    ]
