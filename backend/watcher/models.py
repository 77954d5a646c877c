"""
igotifier Watcher Data Models.

Defines watch targets, change notifications and loop messages.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


def is_hidden(name: str) -> bool:
    """Check if a directory entry name is hidden."""
    return name.startswith(".")


class TargetKind(str, Enum):
    """Kinds of watched locations."""

    FILE = "file"
    DIRECTORY = "directory"


class Operation(str, Enum):
    """Operation kinds reported for a change. Informational only."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    CHMOD = "chmod"


class MessageKind(str, Enum):
    """Kinds of items delivered to the event loop channel."""

    EVENT = "event"
    ERROR = "error"
    SIGNAL = "signal"
    CLOSED = "closed"


@dataclass(frozen=True)
class WatchTarget:
    """A filesystem location subscribed to change notifications."""

    path: Path
    kind: TargetKind


@dataclass(frozen=True)
class ChangeNotification:
    """A single change reported by the notification source."""

    path: Path
    operation: Operation
    is_directory: bool = False


@dataclass(frozen=True)
class Message:
    """An item on the event loop channel."""

    kind: MessageKind
    payload: Any = None
