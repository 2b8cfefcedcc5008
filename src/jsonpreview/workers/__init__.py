"""Background JSON worker, its message protocol and the asynchronous client."""

from .actions import ACTION_HANDLERS, DiffPayload, WorkerAction, execute_action, resolve_action
from .client import (
    DEFAULT_TIMEOUT,
    JsonWorkerClient,
    get_shared_worker_client,
    reset_shared_worker_client,
    set_shared_worker_client,
)
from .handles import ProcessWorkerHandle, WorkerFactory, WorkerHandle, background_workers_supported
from .protocol import WorkerRequest, WorkerResponse

__all__ = [
    "ACTION_HANDLERS",
    "DEFAULT_TIMEOUT",
    "DiffPayload",
    "JsonWorkerClient",
    "ProcessWorkerHandle",
    "WorkerAction",
    "WorkerFactory",
    "WorkerHandle",
    "WorkerRequest",
    "WorkerResponse",
    "background_workers_supported",
    "execute_action",
    "get_shared_worker_client",
    "reset_shared_worker_client",
    "resolve_action",
    "set_shared_worker_client",
]
