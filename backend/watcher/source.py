"""
igotifier Notification Source.

Cross-platform change notifications using watchdog, delivered to a Channel.
Requires Python 3.11+.
"""

import os
import queue
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import EventEmitter

from watcher.channel import Channel
from watcher.exceptions import SourceError, SubscriptionError
from watcher.models import ChangeNotification, Operation, is_hidden
from utils.logger import LoggerMixin

# watchdog reports attribute-only changes (touch, chmod) as "modified".
# Open and close-without-write events are reads, not changes.
OPERATION_BY_EVENT_TYPE: dict[str, Operation] = {
    EVENT_TYPE_CREATED: Operation.CREATE,
    EVENT_TYPE_MODIFIED: Operation.WRITE,
    EVENT_TYPE_CLOSED: Operation.WRITE,
    EVENT_TYPE_DELETED: Operation.REMOVE,
    EVENT_TYPE_MOVED: Operation.RENAME,
}


class NotificationSource(Protocol):
    """Interface the registrar and the event loop expect from a source."""

    def subscribe(self, path: Path) -> None:
        """Start receiving notifications for path. Raises SubscriptionError."""
        ...

    def close(self) -> None:
        """Stop delivering notifications and close the stream."""
        ...


class ChannelEventHandler(FileSystemEventHandler):
    """
    Converts watchdog events into ChangeNotifications on a channel.

    An optional is_watched predicate decides which paths belong to the
    registered targets; events for anything else are dropped.
    """

    def __init__(
        self,
        channel: Channel,
        is_watched: Callable[[Path, bool], bool] | None = None,
    ) -> None:
        super().__init__()
        self._channel = channel
        self._is_watched = is_watched

    def _should_ignore(self, path: Path, is_directory: bool) -> bool:
        """Check if a path lies outside the registered targets."""
        return self._is_watched is not None and not self._is_watched(path, is_directory)

    def _event_path(self, event: FileSystemEvent) -> Path | None:
        """Pick the first watched path of an event, trying the source first."""
        candidates = [event.src_path]
        if event.event_type == EVENT_TYPE_MOVED and event.dest_path:
            candidates.append(event.dest_path)

        for candidate in candidates:
            path = Path(os.fsdecode(candidate))
            if not self._should_ignore(path, event.is_directory):
                return path
        return None

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Forward every change event, whatever its kind."""
        operation = OPERATION_BY_EVENT_TYPE.get(event.event_type)
        if operation is None:
            return

        path = self._event_path(event)
        if path is None:
            return

        self._channel.send_event(
            ChangeNotification(
                path=path,
                operation=operation,
                is_directory=event.is_directory,
            )
        )


class _ReportingObserver(Observer):
    """
    Observer that reports handler failures instead of dying silently.

    Failures inside emitter threads never reach dispatch_events; the
    source reports those through threading.excepthook.
    """

    def __init__(self, channel: Channel) -> None:
        super().__init__()
        self._channel = channel

    def dispatch_events(self, *args, **kwargs) -> None:
        try:
            super().dispatch_events(*args, **kwargs)
        except queue.Empty:
            raise
        except Exception as e:
            self._channel.send_error(e)


class WatchdogSource(LoggerMixin):
    """
    Notification source backed by a single watchdog observer.

    The first directory subscribed is scheduled recursively, so a whole
    tree shares one emitter (one inotify instance on Linux). Directories
    below it are only added to the watched set. Events are forwarded when
    they concern a watched path or a direct entry of a watched directory;
    hidden directories and unregistered subtrees stay silent.
    """

    def __init__(self, channel: Channel) -> None:
        """
        Create the observer and start its dispatch thread.

        Args:
            channel: Channel receiving notifications and errors

        Raises:
            SourceError: If the platform observer cannot be started
        """
        self._channel = channel
        self._handler = ChannelEventHandler(channel, is_watched=self.is_watched)
        self._watched: frozenset[Path] = frozenset()
        self._recursive_roots: list[Path] = []
        self._closed = False

        try:
            self._observer = _ReportingObserver(channel)
            self._observer.start()
        except Exception as e:
            raise SourceError(f"failed to create watcher: {e}") from e

        self._previous_excepthook = threading.excepthook
        threading.excepthook = self._report_emitter_failure

    @property
    def watched(self) -> frozenset[Path]:
        """Paths subscribed so far."""
        return self._watched

    def is_watched(self, path: Path, is_directory: bool) -> bool:
        """
        Check if an event path belongs to the subscribed targets.

        Args:
            path: Path reported by watchdog
            is_directory: Whether the path is a directory

        Returns:
            True for a subscribed path or a direct entry of a subscribed
            directory, except hidden directories
        """
        watched = self._watched
        if path in watched:
            return True
        if is_directory and is_hidden(path.name):
            return False
        return path.parent in watched

    def subscribe(self, path: Path) -> None:
        """
        Subscribe a single file or directory.

        A directory already inside a recursive watch needs no new emitter.
        Otherwise the emitter starts immediately because the observer is
        already running, so OS-level failures surface here.

        Raises:
            SubscriptionError: If the OS refuses the watch
        """
        path = Path(path)

        if not any(path.is_relative_to(root) for root in self._recursive_roots):
            recursive = path.is_dir()
            try:
                self._observer.schedule(self._handler, str(path), recursive=recursive)
            except OSError as e:
                raise SubscriptionError(path, e.strerror or str(e)) from e

            if recursive:
                self._recursive_roots.append(path)

        # Replaced, not mutated: the observer thread reads it concurrently.
        self._watched = self._watched | {path}
        self.log.debug("Subscribed", path=str(path))

    def _report_emitter_failure(self, args: threading.ExceptHookArgs) -> None:
        """Deliver a crashed emitter thread's exception to the channel."""
        if (
            not self._closed
            and isinstance(args.thread, EventEmitter)
            and isinstance(args.exc_value, Exception)
        ):
            self._channel.send_error(args.exc_value)
            return
        self._previous_excepthook(args)

    def close(self) -> None:
        """Stop the observer and close the notification stream."""
        if self._closed:
            return
        self._closed = True

        if threading.excepthook == self._report_emitter_failure:
            threading.excepthook = self._previous_excepthook

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._channel.close()
