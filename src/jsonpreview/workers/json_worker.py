"""Entry point executed inside the background JSON worker process."""

from __future__ import annotations

import logging
from multiprocessing.connection import Connection
from typing import Any

from ..errors import JsonPipelineError
from .actions import ACTION_HANDLERS
from .protocol import SHUTDOWN, WorkerRequest, WorkerResponse

__all__ = ["handle_message", "run_worker"]

LOGGER = logging.getLogger(__name__)


def handle_message(message: Any) -> WorkerResponse:
    """Execute one request frame and build its response."""

    request_id = message.get("requestId") if isinstance(message, dict) else None
    try:
        request = WorkerRequest.from_message(message)
        result = ACTION_HANDLERS[request.action](request.payload)
    except Exception as exc:
        error_code = exc.error_code if isinstance(exc, JsonPipelineError) else None
        return WorkerResponse.failure(
            request_id if isinstance(request_id, str) else None,
            str(exc),
            error_code=error_code,
        )
    return WorkerResponse.success(request.request_id, result)


def run_worker(conn: Connection) -> None:
    """Serve requests from *conn* until EOF or the shutdown sentinel."""

    try:
        while True:
            try:
                message = conn.recv()
            except (EOFError, OSError):
                break
            if message is SHUTDOWN:
                break
            response = handle_message(message)
            try:
                conn.send(response.to_message())
            except (BrokenPipeError, EOFError):
                break
            except Exception as exc:
                # Result could not be pickled; report it against the request instead.
                conn.send(WorkerResponse.failure(response.request_id, f"Unable to send worker result: {exc}").to_message())
    except KeyboardInterrupt:  # pragma: no cover - parent owns interrupt handling
        pass
    finally:
        conn.close()
        LOGGER.debug("JSON worker loop exited")
