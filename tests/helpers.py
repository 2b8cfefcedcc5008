"""Test doubles for the worker transport."""

from __future__ import annotations

from typing import Any, Mapping

from jsonpreview.workers.json_worker import handle_message


class FakeWorkerHandle:
    """Records posted frames; tests deliver replies through the captured callbacks."""

    def __init__(self, on_message: Any, on_error: Any) -> None:
        self.on_message = on_message
        self.on_error = on_error
        self.posted: list[dict[str, Any]] = []
        self.terminated = False
        self.post_error: BaseException | None = None

    def post(self, message: Mapping[str, Any]) -> None:
        if self.post_error is not None:
            raise self.post_error
        self.posted.append(dict(message))

    def terminate(self) -> None:
        self.terminated = True

    def reply(self, index: int = -1) -> None:
        """Answer a posted frame the way the real worker would."""

        self.on_message(handle_message(self.posted[index]).to_message())

    def request_id(self, index: int = -1) -> str:
        return self.posted[index]["requestId"]


class FakeWorkerFactory:
    def __init__(self, *, error: BaseException | None = None) -> None:
        self.error = error
        self.handles: list[FakeWorkerHandle] = []
        self.calls = 0

    def __call__(self, on_message: Any, on_error: Any) -> FakeWorkerHandle:
        self.calls += 1
        if self.error is not None:
            raise self.error
        handle = FakeWorkerHandle(on_message, on_error)
        self.handles.append(handle)
        return handle

    @property
    def handle(self) -> FakeWorkerHandle:
        return self.handles[-1]
