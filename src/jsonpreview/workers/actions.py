"""Closed set of worker actions and the handlers that implement them.

The same handler table backs the background process and the in-process
fallback, so both execution paths produce identical results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from ..core.json_diff import compute_diff
from ..core.json_ops import format_json, parse_json
from ..errors import JsonOperationError, UnknownActionError

__all__ = [
    "ACTION_HANDLERS",
    "DiffPayload",
    "WorkerAction",
    "execute_action",
    "resolve_action",
]

Handler = Callable[[Any], Any]


class WorkerAction(str, Enum):
    """Operations the JSON worker understands."""

    PARSE = "parse"
    STRINGIFY = "stringify"
    DIFF = "diff"


@dataclass(frozen=True, slots=True)
class DiffPayload:
    """Typed payload for :attr:`WorkerAction.DIFF`."""

    baseline: Any
    candidate: Any

    def to_wire(self) -> dict[str, Any]:
        return {"baseline": self.baseline, "candidate": self.candidate}

    @classmethod
    def coerce(cls, payload: Any) -> "DiffPayload":
        if isinstance(payload, DiffPayload):
            return payload
        if isinstance(payload, Mapping):
            return cls(baseline=payload.get("baseline"), candidate=payload.get("candidate"))
        raise JsonOperationError("Diff payload must provide 'baseline' and 'candidate'.")


def _handle_parse(payload: Any) -> Any:
    return parse_json(payload)


def _handle_stringify(payload: Any) -> str:
    return format_json(payload)


def _handle_diff(payload: Any) -> Any:
    diff_payload = DiffPayload.coerce(payload)
    return compute_diff(diff_payload.baseline, diff_payload.candidate)


ACTION_HANDLERS: Mapping[WorkerAction, Handler] = {
    WorkerAction.PARSE: _handle_parse,
    WorkerAction.STRINGIFY: _handle_stringify,
    WorkerAction.DIFF: _handle_diff,
}

_missing = set(WorkerAction) - set(ACTION_HANDLERS)
if _missing:  # pragma: no cover - guards against adding an action without a handler
    raise RuntimeError(f"Worker actions without handlers: {sorted(a.value for a in _missing)}")
del _missing


def resolve_action(action: WorkerAction | str) -> WorkerAction:
    """Return the :class:`WorkerAction` named by *action*."""

    if isinstance(action, WorkerAction):
        return action
    try:
        return WorkerAction(str(action))
    except ValueError:
        raise UnknownActionError(f"Unknown worker action: {action}", action=str(action)) from None


def execute_action(action: WorkerAction | str, payload: Any) -> Any:
    """Run *action* synchronously against the handler table."""

    resolved = resolve_action(action)
    return ACTION_HANDLERS[resolved](payload)
