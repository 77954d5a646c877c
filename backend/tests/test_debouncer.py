"""
Tests for the Debouncer.

Requires Python 3.11+.
"""

import threading
import time
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from conftest import RecordingDispatcher, wait_for
from watcher.debouncer import DEBOUNCE_DELAY, Debouncer, TriggerCell
from watcher.models import ChangeNotification, Operation

DELAY = 0.1


def write_event(name: str = "a.txt") -> ChangeNotification:
    return ChangeNotification(path=Path("/proj/src") / name, operation=Operation.WRITE)


class TestTriggerCell:
    """Test cases for the single pending trigger."""

    def test_arm_fires_once(self):
        """Test an armed trigger fires its callback once."""
        cell = TriggerCell()
        fired: list[str] = []

        cell.arm(0.05, "echo done", fired.append)

        assert wait_for(lambda: fired == ["echo done"])
        time.sleep(0.1)
        assert fired == ["echo done"]
        assert cell.pending is None

    def test_rearm_replaces_pending(self):
        """Test arming again cancels the previous trigger."""
        cell = TriggerCell()
        fired: list[str] = []

        first = cell.arm(0.05, "first", fired.append)
        second = cell.arm(0.05, "second", fired.append)

        assert cell.pending is second
        assert first is not second
        assert wait_for(lambda: fired == ["second"])
        time.sleep(0.1)
        assert fired == ["second"]

    def test_cancel_if_pending(self):
        """Test cancelling suppresses the dispatch."""
        cell = TriggerCell()
        fired: list[str] = []

        cell.arm(0.05, "cmd", fired.append)

        assert cell.cancel_if_pending() is True
        assert cell.cancel_if_pending() is False
        time.sleep(0.15)
        assert fired == []

    def test_stale_expiry_is_suppressed(self):
        """Test a timer that fires after being replaced does not dispatch."""
        cell = TriggerCell()
        fired: list[str] = []

        stale = cell.arm(10.0, "stale", fired.append)
        cell.arm(10.0, "current", fired.append)

        # Simulate the stale timer firing despite cancel()
        cell._expire(stale, fired.append)

        assert fired == []
        assert cell.cancel_if_pending() is True

    def test_fire_time_tracks_latest_arm(self):
        """Test the scheduled fire time follows the most recent arm."""
        cell = TriggerCell()
        before = time.monotonic()

        trigger = cell.arm(0.5, "cmd", lambda command: None)

        assert before + 0.5 <= trigger.fire_at <= time.monotonic() + 0.5
        cell.cancel_if_pending()

    def test_callback_runs_outside_lock(self):
        """Test a slow callback does not block re-arming."""
        cell = TriggerCell()
        started = threading.Event()
        release = threading.Event()

        def slow(command: str) -> None:
            started.set()
            release.wait(2.0)

        cell.arm(0.01, "slow", slow)
        assert started.wait(2.0)

        begin = time.monotonic()
        cell.arm(10.0, "next", slow)
        assert time.monotonic() - begin < 0.5

        release.set()
        cell.cancel_if_pending()


class TestDebouncer:
    """Test cases for Debouncer."""

    def test_default_delay(self):
        """Test the fixed debounce delay is 100ms."""
        assert DEBOUNCE_DELAY == pytest.approx(0.1)

    def test_burst_coalesces_to_one_dispatch(self, recording_dispatcher: RecordingDispatcher):
        """Test five rapid writes produce exactly one dispatch."""
        debouncer = Debouncer("echo done", recording_dispatcher.dispatch, delay=DELAY)

        for _ in range(5):
            debouncer.notify(write_event())
            last = time.monotonic()
            time.sleep(0.02)

        assert wait_for(lambda: recording_dispatcher.count == 1)
        time.sleep(DELAY * 2)
        assert recording_dispatcher.count == 1

        command, fired_at = recording_dispatcher.calls[0]
        assert command == "echo done"
        assert fired_at - last >= DELAY * 0.9

    def test_new_window_after_dispatch(self, recording_dispatcher: RecordingDispatcher):
        """Test a notification after a dispatch starts a fresh window."""
        debouncer = Debouncer("make", recording_dispatcher.dispatch, delay=DELAY)

        debouncer.notify(write_event())
        assert wait_for(lambda: recording_dispatcher.count == 1)

        debouncer.notify(write_event())
        assert wait_for(lambda: recording_dispatcher.count == 2)

    def test_metadata_change_resets_timer(self, recording_dispatcher: RecordingDispatcher):
        """Test a chmod notification re-arms the timer like a write."""
        debouncer = Debouncer("make", recording_dispatcher.dispatch, delay=DELAY)

        debouncer.notify(write_event())
        time.sleep(DELAY * 0.6)
        debouncer.notify(ChangeNotification(path=Path("/proj/cfg.yaml"), operation=Operation.CHMOD))
        rearmed_at = time.monotonic()

        assert wait_for(lambda: recording_dispatcher.count == 1)
        time.sleep(DELAY)
        assert recording_dispatcher.count == 1
        assert recording_dispatcher.calls[0][1] - rearmed_at >= DELAY * 0.9

    def test_single_metadata_change_dispatches(self, recording_dispatcher: RecordingDispatcher):
        """Test a lone touch triggers a dispatch."""
        debouncer = Debouncer("reload", recording_dispatcher.dispatch, delay=DELAY)

        debouncer.notify(ChangeNotification(path=Path("/etc/cfg.yaml"), operation=Operation.CHMOD))

        assert wait_for(lambda: recording_dispatcher.count == 1)

    def test_clear_drops_pending(self, recording_dispatcher: RecordingDispatcher):
        """Test clear() prevents the pending dispatch."""
        debouncer = Debouncer("make", recording_dispatcher.dispatch, delay=DELAY)

        debouncer.notify(write_event())
        assert debouncer.pending is not None
        assert debouncer.clear() is True

        time.sleep(DELAY * 2)
        assert recording_dispatcher.count == 0
        assert debouncer.pending is None

    def test_verbose_logs_events(self, recording_dispatcher: RecordingDispatcher):
        """Test verbose mode logs every notification."""
        debouncer = Debouncer("make", recording_dispatcher.dispatch, delay=10.0, verbose=True)

        with capture_logs() as logs:
            debouncer.notify(write_event("b.txt"))
        debouncer.clear()

        assert logs == [
            {
                "event": "Event",
                "op": "write",
                "path": str(Path("/proj/src/b.txt")),
                "log_level": "info",
            }
        ]

    def test_quiet_mode_logs_nothing(self, recording_dispatcher: RecordingDispatcher):
        """Test non-verbose mode does not log notifications."""
        debouncer = Debouncer("make", recording_dispatcher.dispatch, delay=10.0)

        with capture_logs() as logs:
            debouncer.notify(write_event())
        debouncer.clear()

        assert logs == []

    def test_concurrent_notifications_keep_one_trigger(self, recording_dispatcher: RecordingDispatcher):
        """Test notifications from many threads still yield one dispatch."""
        debouncer = Debouncer("make", recording_dispatcher.dispatch, delay=DELAY)

        threads = [
            threading.Thread(target=lambda: [debouncer.notify(write_event()) for _ in range(20)])
            for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert wait_for(lambda: recording_dispatcher.count == 1)
        time.sleep(DELAY * 2)
        assert recording_dispatcher.count == 1
