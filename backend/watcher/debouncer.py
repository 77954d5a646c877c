"""
igotifier Debouncer.

Collapses bursts of change notifications into a single dispatch.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from watcher.models import ChangeNotification
from utils.logger import LoggerMixin

DEBOUNCE_DELAY = 0.1  # seconds


@dataclass
class PendingTrigger:
    """The single outstanding delayed dispatch."""

    fire_at: float  # time.monotonic() deadline
    command: str
    timer: threading.Timer = field(repr=False)


class TriggerCell:
    """
    Owns at most one PendingTrigger.

    arm() and cancel_if_pending() are the only mutating operations; both
    hold the lock only for "stop old, install new". Expiry takes the same
    lock to decide whether its trigger is still current, then runs the
    callback outside the lock.
    """

    def __init__(self) -> None:
        self._pending: PendingTrigger | None = None
        self._lock = threading.Lock()

    def arm(self, delay: float, command: str, callback: Callable[[str], Any]) -> PendingTrigger:
        """
        Replace any pending trigger with a fresh one firing after delay.

        Args:
            delay: Seconds until the trigger fires
            command: Command string handed to the callback
            callback: Called with command on the timer thread

        Returns:
            The newly installed trigger
        """
        with self._lock:
            if self._pending is not None:
                self._pending.timer.cancel()

            timer = threading.Timer(delay, lambda: self._expire(trigger, callback))
            timer.daemon = True
            trigger = PendingTrigger(
                fire_at=time.monotonic() + delay,
                command=command,
                timer=timer,
            )
            self._pending = trigger
            timer.start()
            return trigger

    def cancel_if_pending(self) -> bool:
        """
        Cancel the pending trigger, if any.

        Returns:
            True if a trigger was pending and is now suppressed
        """
        with self._lock:
            if self._pending is None:
                return False
            self._pending.timer.cancel()
            self._pending = None
            return True

    @property
    def pending(self) -> PendingTrigger | None:
        """Get the currently pending trigger."""
        with self._lock:
            return self._pending

    def _expire(self, trigger: PendingTrigger, callback: Callable[[str], Any]) -> None:
        """Commit and run trigger unless a newer one replaced it."""
        with self._lock:
            if self._pending is not trigger:
                return
            self._pending = None

        callback(trigger.command)


class Debouncer(LoggerMixin):
    """
    Debounces rapid change notifications.

    Every notification, metadata-only changes included, re-arms the
    trigger with a full delay window. The callback fires once the delay
    elapses with no further notifications.
    """

    def __init__(
        self,
        command: str,
        callback: Callable[[str], Any],
        delay: float = DEBOUNCE_DELAY,
        verbose: bool = False,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            command: Command string passed to callback on expiry
            callback: Dispatch function, run on the timer thread
            delay: Quiet period in seconds before dispatching
            verbose: Log every notification
        """
        self._command = command
        self._callback = callback
        self._delay = delay
        self._verbose = verbose
        self._cell = TriggerCell()

    def notify(self, notification: ChangeNotification) -> PendingTrigger:
        """
        Record a change notification and (re)arm the trigger.

        Args:
            notification: The change just received

        Returns:
            The trigger now pending
        """
        if self._verbose:
            self.log.info(
                "Event",
                op=notification.operation.value,
                path=str(notification.path),
            )

        return self._cell.arm(self._delay, self._command, self._callback)

    def clear(self) -> bool:
        """Drop the pending trigger without dispatching."""
        return self._cell.cancel_if_pending()

    @property
    def pending(self) -> PendingTrigger | None:
        """Get the trigger currently waiting to fire."""
        return self._cell.pending
