"""JSON preview rendering: output surfaces, the render service and debouncing."""

from .scheduler import DEFAULT_PREVIEW_DELAY, DeferredPreviewTask
from .service import (
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_SUCCESS_MESSAGE,
    PayloadStage,
    PreviewRequest,
    PreviewResult,
    render_json_preview,
    run_preview,
)
from .surface import (
    STATUS_ICONS,
    PreviewBuffer,
    StatusIndicator,
    StatusLabel,
    TextBuffer,
    set_validation_status,
    status_icon,
)

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "DEFAULT_PREVIEW_DELAY",
    "DEFAULT_SUCCESS_MESSAGE",
    "STATUS_ICONS",
    "DeferredPreviewTask",
    "PayloadStage",
    "PreviewBuffer",
    "PreviewRequest",
    "PreviewResult",
    "StatusIndicator",
    "StatusLabel",
    "TextBuffer",
    "render_json_preview",
    "run_preview",
    "set_validation_status",
    "status_icon",
]
