"""
igotifier Event Loop.

Registers watch targets, then feeds change notifications to the debouncer
until a termination signal arrives or the notification stream closes.
Requires Python 3.11+.
"""

import signal
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager, nullcontext
from pathlib import Path

from dispatcher.command_runner import CommandDispatcher
from watcher.channel import Channel
from watcher.debouncer import DEBOUNCE_DELAY, Debouncer
from watcher.exceptions import PathError, WatcherError
from watcher.models import MessageKind, WatchTarget
from watcher.registrar import register_targets
from watcher.source import NotificationSource, WatchdogSource
from utils.config import DispatchConfig
from utils.logger import LoggerMixin

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def signal_name(signum: int) -> str:
    """Get a readable name for a signal number."""
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


@contextmanager
def termination_signals(
    channel: Channel,
    signals: tuple[signal.Signals, ...] = TERMINATION_SIGNALS,
) -> Iterator[None]:
    """
    Deliver termination signals to channel while the block runs.

    Previous handlers are restored on exit. Python only allows signal
    handlers on the main thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, frame: object) -> None:
        channel.send_signal(signum)

    previous = {signum: signal.signal(signum, _handler) for signum in signals}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


class EventLoop(LoggerMixin):
    """
    The watch, debounce and dispatch loop.

    The loop thread only ever blocks on the channel. Dispatch runs on the
    debounce timer thread and is never awaited, so a slow command does
    not delay debouncing of later notifications.
    """

    def __init__(
        self,
        config: DispatchConfig,
        source_factory: Callable[[Channel], NotificationSource] = WatchdogSource,
        dispatcher: CommandDispatcher | None = None,
        delay: float = DEBOUNCE_DELAY,
        handle_signals: bool = True,
    ) -> None:
        """
        Initialize the event loop.

        Args:
            config: Watch path, command and verbosity
            source_factory: Builds the notification source around the channel
            dispatcher: Command dispatcher; one is created from config if omitted
            delay: Debounce window in seconds
            handle_signals: Install SIGINT/SIGTERM handlers while serving
        """
        self.config = config
        self.channel = Channel()
        self._source_factory = source_factory
        self._dispatcher = dispatcher or CommandDispatcher(verbose=config.verbose)
        self._handle_signals = handle_signals
        self._source: NotificationSource | None = None

        self.debouncer = Debouncer(
            command=config.command,
            callback=self._dispatcher.dispatch,
            delay=delay,
            verbose=config.verbose,
        )
        self.targets: set[WatchTarget] = set()

    def setup(self) -> set[WatchTarget]:
        """
        Validate the path, create the source and register targets.

        Returns:
            The registered watch targets

        Raises:
            PathError: If the watch path is invalid
            SourceError: If the notification source cannot be created
            SubscriptionError: If a target cannot be subscribed
        """
        path = Path(self.config.path)
        try:
            path.stat()
        except OSError as e:
            raise PathError(path, e.strerror or str(e)) from e

        source = self._source_factory(self.channel)
        try:
            self.targets = register_targets(path, source)
        except WatcherError:
            source.close()
            raise
        self._source = source

        self.log.info("Watching for changes...", path=str(path))
        if self.config.verbose:
            self.log.info("Will execute", command=self.config.command)

        return self.targets

    def serve(self) -> None:
        """
        Process channel messages until shutdown.

        Source errors are logged and the loop keeps going. Returns normally
        on a termination signal or when the stream closes.
        """
        while True:
            message = self.channel.receive()

            if message.kind is MessageKind.EVENT:
                self.debouncer.notify(message.payload)
            elif message.kind is MessageKind.ERROR:
                self.log.error("Watcher error", error=str(message.payload))
            elif message.kind is MessageKind.SIGNAL:
                self.log.info(
                    "Received signal, shutting down...",
                    signal=signal_name(message.payload),
                )
                return
            elif message.kind is MessageKind.CLOSED:
                self.log.debug("Notification stream closed")
                return

    def run(self) -> None:
        """
        Set up and serve until shutdown.

        The pending trigger and any running command are abandoned on exit.

        Raises:
            WatcherError: If setup fails
        """
        self.setup()
        signals = termination_signals(self.channel) if self._handle_signals else nullcontext()
        try:
            with signals:
                self.serve()
        finally:
            self.close()

    def stop(self) -> None:
        """Close the notification stream, ending serve()."""
        self.close()

    def close(self) -> None:
        """Close the notification source once."""
        source, self._source = self._source, None
        if source is not None:
            source.close()
