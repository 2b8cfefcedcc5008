"""Message contract between the worker client and the background process.

Outbound::

    {"action": "stringify", "requestId": "<hex>", "payload": {...}}

Inbound::

    {"requestId": "<hex>", "status": "success", "result": "..."}
    {"requestId": "<hex>", "status": "error", "message": "...", "errorCode": "invalid_json"}

``errorCode`` is present when the failure was a pipeline error, so the client
can raise the same exception type the in-process path would. A bare ``None``
frame asks the worker process to exit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from .actions import WorkerAction, resolve_action

__all__ = ["SHUTDOWN", "ResponseStatus", "WorkerRequest", "WorkerResponse"]

SHUTDOWN = None
ResponseStatus = Literal["success", "error"]
_DEFAULT_ERROR_MESSAGE = "Worker error"


@dataclass(frozen=True, slots=True)
class WorkerRequest:
    action: WorkerAction
    request_id: str
    payload: Any = None

    def to_message(self) -> dict[str, Any]:
        return {"action": self.action.value, "requestId": self.request_id, "payload": self.payload}

    @classmethod
    def from_message(cls, message: Any) -> "WorkerRequest":
        if not isinstance(message, Mapping):
            raise ValueError("Worker request must be a mapping")
        request_id = message.get("requestId")
        if not isinstance(request_id, str) or not request_id:
            raise ValueError("Worker request is missing a requestId")
        return cls(
            action=resolve_action(message.get("action", "")),
            request_id=request_id,
            payload=message.get("payload"),
        )


@dataclass(frozen=True, slots=True)
class WorkerResponse:
    request_id: str | None
    status: ResponseStatus
    result: Any = None
    message: str | None = None
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, request_id: str, result: Any) -> "WorkerResponse":
        return cls(request_id=request_id, status="success", result=result)

    @classmethod
    def failure(
        cls,
        request_id: str | None,
        message: str | None,
        *,
        error_code: str | None = None,
    ) -> "WorkerResponse":
        return cls(
            request_id=request_id,
            status="error",
            message=message or _DEFAULT_ERROR_MESSAGE,
            error_code=error_code or None,
        )

    def to_message(self) -> dict[str, Any]:
        body: dict[str, Any] = {"requestId": self.request_id, "status": self.status}
        if self.ok:
            body["result"] = self.result
            return body
        body["message"] = self.message or _DEFAULT_ERROR_MESSAGE
        if self.error_code:
            body["errorCode"] = self.error_code
        return body

    @classmethod
    def from_message(cls, message: Any) -> "WorkerResponse | None":
        """Decode an inbound frame, returning ``None`` when it is not a response."""

        if not isinstance(message, Mapping):
            return None
        request_id = message.get("requestId")
        if not isinstance(request_id, str):
            return None
        if message.get("status") == "success":
            return cls.success(request_id, message.get("result"))
        raw_message = message.get("message")
        raw_code = message.get("errorCode")
        return cls.failure(
            request_id,
            str(raw_message) if raw_message else None,
            error_code=raw_code if isinstance(raw_code, str) else None,
        )
