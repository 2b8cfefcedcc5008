"""Handles that own a background execution context for the worker client."""

from __future__ import annotations

import logging
import multiprocessing
import sys
import threading
from typing import Any, Callable, Mapping, Protocol

from .json_worker import run_worker
from .protocol import SHUTDOWN

__all__ = [
    "ErrorCallback",
    "MessageCallback",
    "ProcessWorkerHandle",
    "WorkerFactory",
    "WorkerHandle",
    "background_workers_supported",
]

LOGGER = logging.getLogger(__name__)

MessageCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException | str], None]
_UNSUPPORTED_PLATFORMS = frozenset({"emscripten", "wasi"})


class WorkerHandle(Protocol):
    """Transport to a background context reachable only by message passing."""

    def post(self, message: Mapping[str, Any]) -> None:  # pragma: no cover - protocol stub
        ...

    def terminate(self) -> None:  # pragma: no cover - protocol stub
        ...


class WorkerFactory(Protocol):
    def __call__(self, on_message: MessageCallback, on_error: ErrorCallback) -> WorkerHandle:  # pragma: no cover
        ...


def background_workers_supported() -> bool:
    """Return ``True`` when this runtime can start worker processes."""

    return sys.platform not in _UNSUPPORTED_PLATFORMS


class ProcessWorkerHandle:
    """Runs :func:`run_worker` in a child process and listens on a daemon thread.

    Frames and transport errors are delivered on the listener thread; callers
    are responsible for marshalling them onto their own thread.
    """

    def __init__(
        self,
        on_message: MessageCallback,
        on_error: ErrorCallback,
        *,
        start_method: str | None = None,
        shutdown_timeout: float = 1.0,
    ) -> None:
        self._on_message = on_message
        self._on_error = on_error
        self._shutdown_timeout = max(0.0, shutdown_timeout)
        self._terminating = False
        self._reaper: threading.Thread | None = None
        ctx = multiprocessing.get_context(start_method)
        self._conn, child_conn = ctx.Pipe(duplex=True)
        self._process = ctx.Process(
            target=run_worker,
            args=(child_conn,),
            name="jsonpreview-worker",
            daemon=True,
        )
        try:
            self._process.start()
        except BaseException:
            self._conn.close()
            child_conn.close()
            raise
        # The child owns its end; closing ours lets recv() observe EOF when it exits.
        child_conn.close()
        self._listener = threading.Thread(
            target=self._listen,
            name="jsonpreview-worker-listener",
            daemon=True,
        )
        self._listener.start()
        LOGGER.debug("Started JSON worker process pid=%s", self._process.pid)

    @property
    def process(self) -> Any:
        return self._process

    @property
    def alive(self) -> bool:
        return self._process.is_alive()

    def post(self, message: Mapping[str, Any]) -> None:
        self._conn.send(dict(message))

    def terminate(self) -> None:
        """Ask the worker to exit; shutdown and reaping happen on a background thread."""

        if self._terminating:
            return
        self._terminating = True
        self._reaper = threading.Thread(
            target=self._reap,
            name="jsonpreview-worker-reaper",
            daemon=True,
        )
        self._reaper.start()

    def join(self, timeout: float | None = None) -> None:
        """Wait until a terminated worker has been reaped."""

        if self._reaper is not None:
            self._reaper.join(timeout)

    def _reap(self) -> None:
        try:
            self._conn.send(SHUTDOWN)
        except (OSError, ValueError):
            pass
        self._process.join(self._shutdown_timeout)
        if self._process.is_alive():
            LOGGER.debug("JSON worker did not exit in time; killing pid=%s", self._process.pid)
            self._process.kill()
            self._process.join(self._shutdown_timeout)
        self._conn.close()
        self._listener.join(self._shutdown_timeout)

    def _listen(self) -> None:
        while True:
            try:
                message = self._conn.recv()
            except (EOFError, OSError):
                if not self._terminating:
                    exitcode = self._process.exitcode
                    reason = "Worker process exited unexpectedly"
                    if exitcode is not None:
                        reason = f"{reason} (exit code {exitcode})"
                    self._on_error(reason)
                return
            except Exception as exc:
                if not self._terminating:
                    self._on_error(exc)
                return
            self._on_message(message)
