"""Error types raised by the JSON pipeline, its worker client and operations.

Every error carries a machine-readable ``error_code`` and serializes to a
dictionary so status surfaces and telemetry can report failures uniformly.
"""

from __future__ import annotations

from typing import Any


class ErrorCode:
    """Constants for error codes attached to pipeline errors."""

    INVALID_JSON = "invalid_json"
    UNKNOWN_ACTION = "unknown_action"
    WORKER_ERROR = "worker_error"
    TIMEOUT = "timeout"
    WORKER_UNAVAILABLE = "worker_unavailable"
    VALIDATION_FAILED = "validation_failed"


class JsonPipelineError(Exception):
    """Base class for all errors surfaced by the JSON pipeline."""

    error_code: str = ErrorCode.WORKER_ERROR

    def __init__(self, message: str, *, action: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.action = action

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for status reporting."""
        result: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.action:
            result["action"] = self.action
        return result


class JsonOperationError(JsonPipelineError):
    """Raised when a JSON operation receives malformed or unserializable input."""

    error_code = ErrorCode.INVALID_JSON


class PayloadValidationError(JsonOperationError):
    """Raised by schema validators when a payload violates its schema."""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, *, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [])

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.issues:
            result["issues"] = list(self.issues)
        return result


class UnknownActionError(JsonPipelineError, ValueError):
    """Raised when a request names an action outside the supported set."""

    error_code = ErrorCode.UNKNOWN_ACTION


class WorkerResponseError(JsonPipelineError):
    """A single request failed inside the background worker."""

    error_code = ErrorCode.WORKER_ERROR


class WorkerTimeoutError(JsonPipelineError, TimeoutError):
    """No response arrived for a request before its deadline."""

    error_code = ErrorCode.TIMEOUT


class WorkerUnavailableError(JsonPipelineError):
    """The background worker failed and in-flight requests were abandoned."""

    error_code = ErrorCode.WORKER_UNAVAILABLE


# Failures a handler can raise, by the code they travel under from the worker.
_HANDLER_ERRORS: dict[str, type[JsonPipelineError]] = {
    ErrorCode.INVALID_JSON: JsonOperationError,
    ErrorCode.UNKNOWN_ACTION: UnknownActionError,
}


def error_from_code(code: str | None, message: str, *, action: str | None = None) -> JsonPipelineError:
    """Rebuild the error a handler raised from the code reported with it.

    Codes without a handler-side counterpart become :class:`WorkerResponseError`.
    """

    if code == ErrorCode.VALIDATION_FAILED:
        error: JsonPipelineError = PayloadValidationError(message)
        error.action = action
        return error
    return _HANDLER_ERRORS.get(code or "", WorkerResponseError)(message, action=action)


__all__ = [
    "ErrorCode",
    "JsonPipelineError",
    "JsonOperationError",
    "PayloadValidationError",
    "UnknownActionError",
    "WorkerResponseError",
    "WorkerTimeoutError",
    "WorkerUnavailableError",
    "error_from_code",
]
