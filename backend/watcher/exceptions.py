"""
igotifier Watcher Exceptions.

Fatal setup errors raised before the event loop starts.
Requires Python 3.11+.
"""

from pathlib import Path


class WatcherError(Exception):
    """Base exception for all watcher errors."""


class PathError(WatcherError):
    """The watch root does not exist or a directory cannot be read."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"invalid path {str(self.path)!r}: {reason}")


class SubscriptionError(WatcherError):
    """A target cannot be subscribed with the notification source."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"failed to watch {str(self.path)!r}: {reason}")


class SourceError(WatcherError):
    """The notification source cannot be created."""
