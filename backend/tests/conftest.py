"""
igotifier Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from watcher.channel import Channel
from watcher.exceptions import SubscriptionError


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll predicate until it holds or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class RecordingSource:
    """In-memory notification source that records subscriptions."""

    def __init__(self, channel: Channel | None = None, refuse: set[Path] | None = None) -> None:
        self.channel = channel
        self.refuse = refuse or set()
        self.subscribed: list[Path] = []
        self.closed = False

    def subscribe(self, path: Path) -> None:
        if path in self.refuse:
            raise SubscriptionError(path, "Permission denied")
        self.subscribed.append(path)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.channel is not None:
            self.channel.close()


class RecordingDispatcher:
    """Dispatcher stand-in recording when each dispatch happened."""

    def __init__(self, duration: float = 0.0) -> None:
        self.duration = duration
        self.calls: list[tuple[str, float]] = []
        self._lock = threading.Lock()

    def dispatch(self, command: str) -> None:
        with self._lock:
            self.calls.append((command, time.monotonic()))
        if self.duration:
            time.sleep(self.duration)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.calls)


@pytest.fixture
def recording_dispatcher() -> RecordingDispatcher:
    """Create a dispatcher that records calls."""
    return RecordingDispatcher()


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """
    Create a small project tree.

    proj/
        src/a.txt
        src/pkg/
        docs/
        .git/objects/
        .cache/
    """
    root = tmp_path / "proj"
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / ".git" / "objects").mkdir(parents=True)
    (root / ".cache").mkdir()
    (root / "src" / "a.txt").write_text("a")
    (root / ".hidden_file").write_text("x")
    return root
