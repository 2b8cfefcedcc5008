"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from jsonpreview.services.telemetry import PIPELINE_EVENTS, InMemoryEventSink
from jsonpreview.utils.logging import reset_logging
from jsonpreview.workers.client import reset_shared_worker_client

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("JSONPREVIEW_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("JSONPREVIEW_LOG_DIR", str(tmp_path / "logs"))
    yield
    reset_shared_worker_client()
    reset_logging()


@pytest.fixture
def event_sink() -> Iterator[InMemoryEventSink]:
    sink = InMemoryEventSink().attach(PIPELINE_EVENTS)
    yield sink
    sink.detach()
