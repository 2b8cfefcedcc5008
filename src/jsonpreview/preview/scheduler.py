"""Debounced scheduling for preview refreshes."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from ..services.settings import PipelineSettings

__all__ = ["DEFAULT_PREVIEW_DELAY", "DeferredPreviewTask"]

LOGGER = logging.getLogger(__name__)

DEFAULT_PREVIEW_DELAY = 0.36


class DeferredPreviewTask:
    """Coalesces bursts of :meth:`schedule` calls into one trailing invocation.

    Only the arguments of the most recent call are used. Coroutine callbacks
    run as tasks on the loop that scheduled them.
    """

    def __init__(self, callback: Callable[..., Any], *, delay: float = DEFAULT_PREVIEW_DELAY) -> None:
        if callback is None:
            raise ValueError("callback is required")
        self._callback = callback
        self._delay = max(0.0, float(delay))
        self._timer: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}
        self._task: asyncio.Future[Any] | None = None

    @classmethod
    def from_settings(cls, callback: Callable[..., Any], settings: "PipelineSettings") -> "DeferredPreviewTask":
        """Debounce *callback* by the configured ``preview_debounce_seconds``."""

        return cls(callback, delay=settings.preview_debounce_seconds)

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self, *args: Any, **kwargs: Any) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._args = args
        self._kwargs = kwargs
        self._timer = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._args = ()
        self._kwargs = {}

    async def flush(self) -> Any:
        """Run a pending invocation now and return its result.

        Exceptions from the callback propagate to the caller. Without a
        pending invocation this waits for one already running and returns
        ``None``.
        """

        if self._timer is None:
            task = self._task
            if task is not None and not task.done():
                await asyncio.wait([task])
            return None
        self._timer.cancel()
        self._timer = None
        args, kwargs = self._take_arguments()
        result = self._callback(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _take_arguments(self) -> tuple[tuple[Any, ...], dict[str, Any]]:
        args, kwargs = self._args, self._kwargs
        self._args = ()
        self._kwargs = {}
        return args, kwargs

    def _fire(self) -> None:
        self._timer = None
        args, kwargs = self._take_arguments()
        try:
            result = self._callback(*args, **kwargs)
        except Exception:
            LOGGER.exception("Deferred preview callback failed")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            task.add_done_callback(self._log_task_failure)
            self._task = task

    def _log_task_failure(self, task: asyncio.Future[Any]) -> None:
        if self._task is task:
            self._task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            LOGGER.error("Deferred preview callback failed: %s", error, exc_info=error)
