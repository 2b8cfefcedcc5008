"""Formats application data into a JSON preview with commit-or-rollback semantics."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, Union

from ..core.json_ops import clone_json, format_json, is_composite
from ..errors import JsonOperationError
from ..services.telemetry import PREVIEW_RENDER, emit
from ..workers.client import get_shared_worker_client
from .surface import StatusIndicator, TextBuffer, set_validation_status

if TYPE_CHECKING:
    from ..services.settings import PipelineSettings

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "DEFAULT_SUCCESS_MESSAGE",
    "JsonFormatter",
    "PayloadStage",
    "PreviewRequest",
    "PreviewResult",
    "render_json_preview",
    "run_preview",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Valid JSON"
DEFAULT_ERROR_MESSAGE = "Invalid JSON output."

Transform = Callable[[Any], Any]
MessageSource = Union[str, Callable[[Any], str]]


class JsonFormatter(Protocol):
    def stringify(self, payload: Any) -> Awaitable[str]:  # pragma: no cover - protocol stub
        ...


class _SharedClient:
    def __repr__(self) -> str:
        return "<shared worker client>"


SHARED_CLIENT: Any = _SharedClient()


@dataclass(frozen=True, slots=True)
class PayloadStage:
    """One caller-supplied transform in the preview chain.

    When ``keep_on_none`` is set, a transform returning ``None`` keeps the
    current payload, which lets auto-fixers edit in place and validators
    simply assert.
    """

    name: str
    transform: Transform
    keep_on_none: bool = True

    def apply(self, payload: Any) -> Any:
        result = self.transform(payload)
        if result is None and self.keep_on_none:
            return payload
        return result


@dataclass(slots=True)
class PreviewResult:
    success: bool
    payload: Any = None
    error: BaseException | None = None


@dataclass(slots=True)
class PreviewRequest:
    """Inputs for one preview render; nothing here outlives the call."""

    preview_area: TextBuffer | None
    data: Any = None
    status_element: StatusIndicator | None = None
    build_payload: PayloadStage | None = None
    auto_fix: PayloadStage | None = None
    validator: PayloadStage | None = None
    success_message: MessageSource = DEFAULT_SUCCESS_MESSAGE
    error_message: MessageSource = DEFAULT_ERROR_MESSAGE

    @classmethod
    def create(
        cls,
        *,
        preview_area: TextBuffer | None,
        data: Any = None,
        status_element: StatusIndicator | None = None,
        build_payload: Transform | None = None,
        auto_fix: Transform | None = None,
        validator: Transform | None = None,
        success_message: MessageSource | None = None,
        error_message: MessageSource | None = None,
        settings: "PipelineSettings | None" = None,
    ) -> "PreviewRequest":
        """Wrap plain callables as stages.

        Messages left as ``None`` come from *settings* when given, else the
        module defaults.
        """

        if success_message is None:
            success_message = settings.success_message if settings is not None else DEFAULT_SUCCESS_MESSAGE
        if error_message is None:
            error_message = settings.error_message if settings is not None else DEFAULT_ERROR_MESSAGE
        return cls(
            preview_area=preview_area,
            data=data,
            status_element=status_element,
            build_payload=_stage("build_payload", build_payload, keep_on_none=False),
            auto_fix=_stage("auto_fix", auto_fix),
            validator=_stage("validator", validator),
            success_message=success_message,
            error_message=error_message,
        )

    def correction_stages(self) -> tuple[PayloadStage, ...]:
        return tuple(stage for stage in (self.auto_fix, self.validator) if stage is not None)


async def render_json_preview(
    *,
    preview_area: TextBuffer | None,
    data: Any = None,
    status_element: StatusIndicator | None = None,
    build_payload: Transform | None = None,
    auto_fix: Transform | None = None,
    validator: Transform | None = None,
    success_message: MessageSource | None = None,
    error_message: MessageSource | None = None,
    worker_client: JsonFormatter | None = SHARED_CLIENT,
    settings: "PipelineSettings | None" = None,
) -> PreviewResult:
    """Format *data* into *preview_area*, optionally auto-fixing and validating it.

    Args:
        preview_area: Text buffer that displays the JSON preview.
        data: Raw data to preview.
        status_element: Indicator receiving the validation outcome.
        build_payload: Transformer applied to *data* before formatting.
        auto_fix: Corrective transform; returning ``None`` keeps the payload.
        validator: Final gate; may transform, or raise to reject the payload.
        success_message: Message, or factory of the final payload, shown on success.
            Defaults to ``settings.success_message``, else "Valid JSON".
        error_message: Message shown when a failure carries no message of its own.
            Defaults to ``settings.error_message``, else "Invalid JSON output.".
        worker_client: Formatter used for stringification. Defaults to the
            shared worker client; ``None`` formats in-process.
        settings: Pipeline settings supplying the default messages.

    Returns:
        A :class:`PreviewResult`. The buffer is left untouched on failure.
    """

    request = PreviewRequest.create(
        preview_area=preview_area,
        data=data,
        status_element=status_element,
        build_payload=build_payload,
        auto_fix=auto_fix,
        validator=validator,
        success_message=success_message,
        error_message=error_message,
        settings=settings,
    )
    if worker_client is SHARED_CLIENT:
        worker_client = get_shared_worker_client()
    return await run_preview(request, worker_client=worker_client)


async def run_preview(request: PreviewRequest, *, worker_client: JsonFormatter | None) -> PreviewResult:
    area = request.preview_area
    if area is None:
        return PreviewResult(success=False)

    previous_value = area.value
    started = time.perf_counter()
    payload: Any = request.data
    written = False
    try:
        if request.build_payload is not None:
            payload = request.build_payload.apply(payload)
        if is_composite(payload):
            payload = clone_json(payload)
        for stage in request.correction_stages():
            payload = stage.apply(payload)

        document = payload if payload is not None else {}
        if worker_client is None:
            formatted = format_json(document)
        else:
            formatted = await worker_client.stringify(document)
        if not isinstance(formatted, str):
            raise JsonOperationError("Formatter returned a non-string preview.")

        message = _resolve_message(request.success_message, payload) or DEFAULT_SUCCESS_MESSAGE
        if area.value != formatted:
            written = True
            area.value = formatted
    except Exception as exc:
        LOGGER.error("Unable to update JSON preview: %s", exc)
        LOGGER.debug("JSON preview failure details", exc_info=True)
        if written:
            area.value = previous_value
        set_validation_status(
            request.status_element,
            status="error",
            message=str(exc) or _resolve_error_message(request.error_message, payload),
        )
        _emit_render("error", started, error=exc)
        return PreviewResult(success=False, error=exc)

    set_validation_status(request.status_element, status="success", message=message)
    _emit_render("success", started)
    return PreviewResult(success=True, payload=payload)


def _stage(name: str, transform: Transform | None, *, keep_on_none: bool = True) -> PayloadStage | None:
    if transform is None:
        return None
    return PayloadStage(name, transform, keep_on_none=keep_on_none)


def _resolve_message(message: MessageSource, payload: Any) -> str:
    return message(payload) if callable(message) else message


def _resolve_error_message(message: MessageSource, payload: Any) -> str:
    try:
        return _resolve_message(message, payload) or DEFAULT_ERROR_MESSAGE
    except Exception:
        LOGGER.debug("Error message factory failed", exc_info=True)
        return DEFAULT_ERROR_MESSAGE


def _emit_render(status: str, started: float, *, error: BaseException | None = None) -> None:
    payload: dict[str, Any] = {
        "status": status,
        "latency_ms": round((time.perf_counter() - started) * 1000.0, 3),
    }
    if error is not None:
        payload["error"] = str(error)[:200]
    emit(PREVIEW_RENDER, payload)
