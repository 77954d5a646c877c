"""
igotifier Event Channel.

Single multiplexed channel the event loop blocks on.
Requires Python 3.11+.
"""

import queue

from watcher.models import ChangeNotification, Message, MessageKind


class Channel:
    """
    Carries notifications, source errors, signals and closure to the loop.

    Backed by queue.SimpleQueue: put() is reentrant, so signal handlers
    running on the main thread can publish while get() is blocked there.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Message] = queue.SimpleQueue()

    def send_event(self, notification: ChangeNotification) -> None:
        """Publish a change notification."""
        self._queue.put(Message(MessageKind.EVENT, notification))

    def send_error(self, error: BaseException) -> None:
        """Publish a non-fatal notification source error."""
        self._queue.put(Message(MessageKind.ERROR, error))

    def send_signal(self, signum: int) -> None:
        """Publish a received termination signal."""
        self._queue.put(Message(MessageKind.SIGNAL, signum))

    def close(self) -> None:
        """Mark the notification stream as closed."""
        self._queue.put(Message(MessageKind.CLOSED))

    def receive(self, timeout: float | None = None) -> Message:
        """
        Block until the next message arrives.

        Raises:
            queue.Empty: If timeout elapses with nothing delivered
        """
        return self._queue.get(timeout=timeout)
