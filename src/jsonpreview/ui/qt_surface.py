"""Qt widget adapters for the preview output surfaces."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QtMsgType, qInstallMessageHandler
from PySide6.QtWidgets import QLabel, QLineEdit, QPlainTextEdit, QTextEdit, QWidget

from ..preview.surface import StatusKind, status_icon

__all__ = [
    "PreviewWidgets",
    "QtStatusIndicator",
    "QtTextBuffer",
    "create_preview_widgets",
    "install_qt_log_bridge",
]

LOGGER = logging.getLogger(__name__)
QT_LOGGER = logging.getLogger("jsonpreview.qt")

_QT_LOG_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}
_bridge_installed = False


class QtTextBuffer:
    """Exposes a Qt text widget through the ``value`` attribute previews write to."""

    def __init__(self, widget: QPlainTextEdit | QTextEdit | QLineEdit) -> None:
        if widget is None:
            raise ValueError("widget is required")
        self._widget = widget

    @property
    def widget(self) -> QPlainTextEdit | QTextEdit | QLineEdit:
        return self._widget

    @property
    def value(self) -> str:
        if isinstance(self._widget, QLineEdit):
            return self._widget.text()
        return self._widget.toPlainText()

    @value.setter
    def value(self, text: str) -> None:
        if isinstance(self._widget, QLineEdit):
            self._widget.setText(text)
        else:
            self._widget.setPlainText(text)


class QtStatusIndicator:
    """Renders validation outcomes on a ``QLabel``.

    The status is published as the ``status`` dynamic property so style
    sheets can colour the label, and the icon name as ``statusIcon``.
    """

    def __init__(self, label: QLabel) -> None:
        if label is None:
            raise ValueError("label is required")
        self._label = label

    @property
    def label(self) -> QLabel:
        return self._label

    def set_status(self, status: StatusKind, message: str) -> None:
        text = message or ""
        self._label.setText(text)
        self._label.setToolTip(text)
        self._label.setProperty("status", status)
        self._label.setProperty("statusIcon", status_icon(status) if text else "")
        _refresh_widget_style(self._label)


@dataclass(slots=True)
class PreviewWidgets:
    editor: QPlainTextEdit
    status_label: QLabel
    buffer: QtTextBuffer
    indicator: QtStatusIndicator


def create_preview_widgets(parent: QWidget | None = None) -> PreviewWidgets:
    """Build a read-only preview editor and status label wired to adapters."""

    install_qt_log_bridge()
    editor = QPlainTextEdit(parent)
    editor.setObjectName("jp-preview-editor")
    editor.setReadOnly(True)
    label = QLabel(parent)
    label.setObjectName("jp-preview-status")
    return PreviewWidgets(
        editor=editor,
        status_label=label,
        buffer=QtTextBuffer(editor),
        indicator=QtStatusIndicator(label),
    )


def install_qt_log_bridge() -> bool:
    """Route Qt diagnostics from preview widgets into ``jsonpreview.qt``.

    Returns ``True`` only for the call that installed the handler.
    """

    global _bridge_installed
    if _bridge_installed:
        return False
    qInstallMessageHandler(_forward_qt_message)
    _bridge_installed = True
    return True


def _forward_qt_message(mode: QtMsgType, context: Any, message: str) -> None:
    del context
    QT_LOGGER.log(_QT_LOG_LEVELS.get(mode, logging.INFO), message)


def _refresh_widget_style(widget: Any) -> None:
    try:
        style = widget.style()
        style.unpolish(widget)
        style.polish(widget)
    except Exception:  # pragma: no cover - best effort only
        LOGGER.debug("Unable to refresh style for %s", widget, exc_info=True)
