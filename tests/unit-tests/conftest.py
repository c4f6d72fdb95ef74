# tests/unit-tests/conftest.py
from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, Dict, List

import pytest

from allotment import Progress


@pytest.fixture(scope="session", autouse=True)
def _quiet_env(tmp_path_factory: pytest.TempPathFactory) -> None:
    """
    Keep spinners off the test output and point log files at a temp dir so
    the CLI never writes into the user's data directory.
    """
    os.environ["CI"] = "1"
    os.environ.pop("ALLOTMENT_PROGRESS_ACTIVE", None)
    os.environ["ALLOTMENT_LOG_FILE"] = str(tmp_path_factory.mktemp("logs") / "allotment.log")


# Make autouse fixture appear "used" to static analyzers without affecting runtime
if TYPE_CHECKING:
    _ = _quiet_env


class RecordingSpinner:
    """Spinner double that records every update and enter/exit."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.state: Dict[str, Any] = {}
        self.entered = False
        self.exited = False

    def __enter__(self) -> "RecordingSpinner":
        self.entered = True
        return self

    def __exit__(self, *_: object) -> None:
        self.exited = True

    def start(self) -> "RecordingSpinner":
        return self

    def stop(self) -> None:
        return None

    def update(self, **kwargs: Any) -> "RecordingSpinner":
        self.calls.append(kwargs)
        self.state.update(kwargs)
        return self


@pytest.fixture
def spinner() -> RecordingSpinner:
    return RecordingSpinner()


@pytest.fixture
def root() -> Progress[int, int]:
    return Progress(10000)
