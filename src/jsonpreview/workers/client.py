"""Asynchronous client that offloads JSON operations to a background process.

Requests are matched to responses by correlation id. When the background
process cannot be started, or fails at the transport level, the client latches
into local execution for the rest of its lifetime; callers see the same
future-based interface on both paths.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from ..errors import (
    JsonOperationError,
    JsonPipelineError,
    UnknownActionError,
    WorkerResponseError,
    WorkerTimeoutError,
    WorkerUnavailableError,
    error_from_code,
)
from ..services.telemetry import WORKER_TIMEOUT, WORKER_UNAVAILABLE, emit
from .actions import DiffPayload, WorkerAction, execute_action, resolve_action
from .handles import ProcessWorkerHandle, WorkerFactory, WorkerHandle, background_workers_supported
from .protocol import WorkerRequest, WorkerResponse

if TYPE_CHECKING:
    from ..services.settings import PipelineSettings

__all__ = [
    "DEFAULT_TIMEOUT",
    "JsonWorkerClient",
    "get_shared_worker_client",
    "reset_shared_worker_client",
    "set_shared_worker_client",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 7.0
_DEFAULT_FAILURE_MESSAGE = "Worker unavailable"


@dataclass(slots=True)
class _PendingEntry:
    action: WorkerAction
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle | None = None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class JsonWorkerClient:
    """Dispatches JSON operations to a worker process with a local fallback.

    Args:
        worker_factory: Callable creating the background context. ``None``
            disables the worker entirely so every call runs in-process.
        timeout: Default per-request deadline in seconds.
    """

    def __init__(
        self,
        *,
        worker_factory: WorkerFactory | None = ProcessWorkerHandle,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._worker_factory = worker_factory
        self._timeout = float(timeout)
        self._worker: WorkerHandle | None = None
        self._pending: dict[str, _PendingEntry] = {}
        self._unavailable = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._generation = 0

    @classmethod
    def from_settings(cls, settings: "PipelineSettings") -> "JsonWorkerClient":
        factory: WorkerFactory | None = None
        if settings.worker_enabled:
            factory = functools.partial(ProcessWorkerHandle, start_method=settings.worker_start_method)
        return cls(worker_factory=factory, timeout=settings.worker_timeout)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def unavailable(self) -> bool:
        """``True`` once the background worker has failed; never reset."""

        return self._unavailable

    @property
    def has_worker(self) -> bool:
        return self._worker is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def timeout(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def request(
        self,
        action: WorkerAction | str,
        payload: Any = None,
        *,
        timeout: float | None = None,
    ) -> asyncio.Future[Any]:
        """Run *action* on *payload* and return a future for its result.

        Must be called from a running event loop. Requests served locally
        return an already-completed future.
        """

        loop = asyncio.get_running_loop()
        try:
            resolved = resolve_action(action)
        except UnknownActionError as exc:
            return _failed_future(loop, exc)

        if not self._worker_usable():
            return self._execute_locally(loop, resolved, payload)
        worker = self._ensure_worker(loop)
        if worker is None:
            return self._execute_locally(loop, resolved, payload)
        return self._dispatch(loop, worker, resolved, payload, timeout)

    def stringify(self, payload: Any, *, timeout: float | None = None) -> asyncio.Future[Any]:
        return self.request(WorkerAction.STRINGIFY, payload, timeout=timeout)

    def parse(self, payload: Any, *, timeout: float | None = None) -> asyncio.Future[Any]:
        return self.request(WorkerAction.PARSE, payload, timeout=timeout)

    def diff(self, baseline: Any, candidate: Any, *, timeout: float | None = None) -> asyncio.Future[Any]:
        return self.request(WorkerAction.DIFF, DiffPayload(baseline, candidate), timeout=timeout)

    def close(self) -> None:
        """Stop the worker process and reject callers still waiting on it."""

        self._generation += 1
        worker, self._worker = self._worker, None
        if worker is not None:
            _terminate_quietly(worker)
        if not self._pending:
            return
        if self._loop is not None and not self._loop.is_closed():
            self._flush_pending("Worker client closed")
        else:
            self._pending.clear()

    # ------------------------------------------------------------------
    # Worker lifecycle
    # ------------------------------------------------------------------
    def _worker_usable(self) -> bool:
        return not self._unavailable and self._worker_factory is not None and background_workers_supported()

    def _ensure_worker(self, loop: asyncio.AbstractEventLoop) -> WorkerHandle | None:
        if self._worker is not None:
            if self._loop is loop:
                return self._worker
            if self._loop is not None and not self._loop.is_closed():
                raise RuntimeError("JsonWorkerClient is bound to a different running event loop")
            self._discard_stale_worker()

        assert self._worker_factory is not None
        self._loop = loop
        self._generation += 1
        generation = self._generation

        def on_message(message: Any) -> None:
            _call_soon(loop, self._handle_message, message)

        def on_error(reason: BaseException | str) -> None:
            _call_soon(loop, self._handle_worker_error, generation, reason)

        try:
            self._worker = self._worker_factory(on_message, on_error)
        except Exception as exc:
            LOGGER.debug("Unable to start JSON worker", exc_info=True)
            self._handle_worker_failure(exc)
            return None
        return self._worker

    def _discard_stale_worker(self) -> None:
        LOGGER.debug("Discarding JSON worker bound to a closed event loop (%d pending)", len(self._pending))
        self._generation += 1
        worker, self._worker = self._worker, None
        if worker is not None:
            _terminate_quietly(worker)
        self._pending.clear()

    def _handle_worker_error(self, generation: int, reason: BaseException | str) -> None:
        if generation != self._generation or self._worker is None:
            LOGGER.debug("Ignoring error from a retired JSON worker: %s", reason)
            return
        self._handle_worker_failure(reason)

    def _handle_worker_failure(self, reason: BaseException | str) -> None:
        first_failure = not self._unavailable
        self._unavailable = True
        self._generation += 1
        worker, self._worker = self._worker, None
        if worker is not None:
            _terminate_quietly(worker)
        message = _describe_reason(reason)
        if first_failure:
            LOGGER.warning("JsonWorkerClient: worker unavailable, using local execution (%s)", message)
            emit(WORKER_UNAVAILABLE, {"reason": message, "pending": len(self._pending)})
        if self._pending:
            self._flush_pending(message)

    # ------------------------------------------------------------------
    # Request bookkeeping
    # ------------------------------------------------------------------
    def _dispatch(
        self,
        loop: asyncio.AbstractEventLoop,
        worker: WorkerHandle,
        action: WorkerAction,
        payload: Any,
        timeout: float | None,
    ) -> asyncio.Future[Any]:
        request_id = self._next_request_id()
        future: asyncio.Future[Any] = loop.create_future()
        entry = _PendingEntry(action=action, future=future)
        self._pending[request_id] = entry
        delay = self._timeout if timeout is None else float(timeout)
        entry.timer = loop.call_later(max(0.0, delay), self._expire, request_id)
        future.add_done_callback(functools.partial(self._forget_cancelled, request_id))

        message = WorkerRequest(action=action, request_id=request_id, payload=_wire_payload(payload)).to_message()
        try:
            worker.post(message)
        except OSError as exc:
            # Never reached the worker, so it is served locally like any later call.
            self._pending.pop(request_id, None)
            entry.cancel_timer()
            self._handle_worker_failure(exc)
            local = self._execute_locally(loop, action, payload)
            _chain_future(local, future)
        except Exception as exc:
            self._reject(request_id, JsonOperationError(f"Unable to send payload to worker: {exc}", action=action.value))
        return future

    def _handle_message(self, message: Any) -> None:
        response = WorkerResponse.from_message(message)
        if response is None:
            LOGGER.debug("Ignoring malformed worker frame: %r", message)
            return
        entry = self._pending.pop(response.request_id or "", None)
        if entry is None:
            LOGGER.debug("Ignoring response for unknown request %s", response.request_id)
            return
        entry.cancel_timer()
        if entry.future.done():
            return
        if response.ok:
            entry.future.set_result(response.result)
        else:
            entry.future.set_exception(
                error_from_code(response.error_code, response.message or "Worker error", action=entry.action.value)
            )

    def _expire(self, request_id: str) -> None:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return
        entry.timer = None
        if entry.future.done():
            return
        action = entry.action.value
        LOGGER.debug("JSON worker request %s timed out (%s)", request_id, action)
        emit(WORKER_TIMEOUT, {"action": action, "request_id": request_id, "pending": len(self._pending)})
        entry.future.set_exception(WorkerTimeoutError(f"Worker timed out for action {action}", action=action))

    def _reject(self, request_id: str, error: BaseException) -> None:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return
        entry.cancel_timer()
        if not entry.future.done():
            entry.future.set_exception(error)

    def _forget_cancelled(self, request_id: str, future: asyncio.Future[Any]) -> None:
        if not future.cancelled():
            return
        entry = self._pending.pop(request_id, None)
        if entry is not None:
            entry.cancel_timer()

    def _flush_pending(self, message: str) -> None:
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            entry.cancel_timer()
            if not entry.future.done():
                entry.future.set_exception(WorkerUnavailableError(message, action=entry.action.value))

    def _next_request_id(self) -> str:
        while True:
            request_id = uuid.uuid4().hex
            if request_id not in self._pending:
                return request_id

    def _execute_locally(
        self,
        loop: asyncio.AbstractEventLoop,
        action: WorkerAction,
        payload: Any,
    ) -> asyncio.Future[Any]:
        future: asyncio.Future[Any] = loop.create_future()
        try:
            future.set_result(execute_action(action, payload))
        except JsonPipelineError as exc:
            future.set_exception(exc)
        except Exception as exc:
            # Same shape the worker reports for a handler failure outside the taxonomy.
            error = WorkerResponseError(str(exc) or "Worker error", action=action.value)
            error.__cause__ = exc
            future.set_exception(error)
        return future


_SHARED_CLIENT: JsonWorkerClient | None = None


def get_shared_worker_client() -> JsonWorkerClient:
    """Return the process-wide default client, creating it on first use."""

    global _SHARED_CLIENT
    if _SHARED_CLIENT is None:
        _SHARED_CLIENT = JsonWorkerClient()
    return _SHARED_CLIENT


def set_shared_worker_client(client: JsonWorkerClient | None) -> None:
    global _SHARED_CLIENT
    _SHARED_CLIENT = client


def reset_shared_worker_client() -> None:
    """Close and drop the shared client so the next lookup creates a fresh one."""

    global _SHARED_CLIENT
    client, _SHARED_CLIENT = _SHARED_CLIENT, None
    if client is not None:
        client.close()


def _wire_payload(payload: Any) -> Any:
    if isinstance(payload, DiffPayload):
        return payload.to_wire()
    return payload


def _failed_future(loop: asyncio.AbstractEventLoop, error: BaseException) -> asyncio.Future[Any]:
    future: asyncio.Future[Any] = loop.create_future()
    future.set_exception(error)
    return future


def _chain_future(source: asyncio.Future[Any], target: asyncio.Future[Any]) -> None:
    if target.done():
        return
    if source.exception() is not None:
        target.set_exception(source.exception())  # type: ignore[arg-type]
    else:
        target.set_result(source.result())


def _call_soon(loop: asyncio.AbstractEventLoop, callback: Callable[..., Any], *args: Any) -> None:
    try:
        loop.call_soon_threadsafe(callback, *args)
    except RuntimeError:
        LOGGER.debug("Event loop closed; dropping JSON worker callback %s", callback)


def _terminate_quietly(worker: WorkerHandle) -> None:
    try:
        worker.terminate()
    except Exception:
        LOGGER.debug("Failed to terminate JSON worker", exc_info=True)


def _describe_reason(reason: BaseException | str | None) -> str:
    if isinstance(reason, str):
        return reason or _DEFAULT_FAILURE_MESSAGE
    if isinstance(reason, BaseException):
        return str(reason) or type(reason).__name__
    return _DEFAULT_FAILURE_MESSAGE
