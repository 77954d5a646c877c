"""
igotifier Watcher Package.

Change notification, debouncing and the main event loop.
Requires Python 3.11+.
"""

from watcher.channel import Channel
from watcher.debouncer import DEBOUNCE_DELAY, Debouncer, PendingTrigger, TriggerCell
from watcher.event_loop import EventLoop
from watcher.exceptions import PathError, SourceError, SubscriptionError, WatcherError
from watcher.models import ChangeNotification, Operation, TargetKind, WatchTarget
from watcher.registrar import iter_watch_directories, register_targets
from watcher.source import WatchdogSource

__all__ = [
    "Channel",
    "DEBOUNCE_DELAY",
    "Debouncer",
    "PendingTrigger",
    "TriggerCell",
    "EventLoop",
    "PathError",
    "SourceError",
    "SubscriptionError",
    "WatcherError",
    "ChangeNotification",
    "Operation",
    "TargetKind",
    "WatchTarget",
    "iter_watch_directories",
    "register_targets",
    "WatchdogSource",
]
