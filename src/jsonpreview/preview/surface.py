"""Output surface contracts for JSON previews: a text buffer and a status indicator."""

from __future__ import annotations

from typing import Literal, Mapping, Protocol, runtime_checkable

__all__ = [
    "STATUS_ICONS",
    "PreviewBuffer",
    "StatusIndicator",
    "StatusKind",
    "StatusLabel",
    "TextBuffer",
    "set_validation_status",
    "status_icon",
]

StatusKind = Literal["success", "warning", "error"]

STATUS_ICONS: Mapping[str, str] = {
    "success": "check_circle",
    "warning": "info",
    "error": "error",
}


@runtime_checkable
class TextBuffer(Protocol):
    """Readable and writable text value, such as a preview text area."""

    value: str


@runtime_checkable
class StatusIndicator(Protocol):
    """Receives validation outcomes; rendering them is up to the implementation."""

    def set_status(self, status: StatusKind, message: str) -> None:  # pragma: no cover - protocol stub
        ...


class PreviewBuffer:
    """In-memory :class:`TextBuffer` that counts writes."""

    def __init__(self, value: str = "") -> None:
        self._value = value
        self.write_count = 0

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, text: str) -> None:
        self._value = text
        self.write_count += 1


class StatusLabel:
    """Headless status indicator tracking the last status, message and icon."""

    def __init__(self) -> None:
        self.status: StatusKind | None = None
        self.message: str = ""
        self.icon: str = ""

    def set_status(self, status: StatusKind, message: str) -> None:
        self.status = status
        self.message = message or ""
        self.icon = status_icon(status) if self.message else ""

    @property
    def state(self) -> tuple[StatusKind | None, str]:
        return self.status, self.message


def status_icon(status: str) -> str:
    return STATUS_ICONS.get(status, STATUS_ICONS["error"])


def set_validation_status(
    indicator: StatusIndicator | None,
    *,
    status: StatusKind = "success",
    message: str = "",
) -> None:
    """Apply *status* and *message* to *indicator* when one is present."""

    if indicator is None:
        return
    indicator.set_status(status, message)
