"""Tests for the clock/input producers and the serializing event loop."""

from __future__ import annotations

import queue
import threading
from typing import Iterable, Optional
from unittest.mock import MagicMock

import pytest

from pomotui.core.loop import (
    ClockSource,
    EventLoop,
    InputError,
    InputFailed,
    InputSource,
    KeyPress,
    Tick,
)
from pomotui.core.timer import Timer, TimerMode

# Generous upper bound for anything a test waits on.
_WAIT = 5.0


def _scripted_reader(keys: Iterable[str]):
    """Return a read_key callable yielding *keys*, then timing out forever."""
    pending = list(keys)

    def read_key(timeout: float) -> Optional[str]:
        if pending:
            return pending.pop(0)
        threading.Event().wait(timeout)
        return None

    return read_key


# ---------------------------------------------------------------------------
# ClockSource
# ---------------------------------------------------------------------------


class TestClockSource:
    """ClockSource puts a Tick on the queue every interval."""

    def test_emits_ticks(self) -> None:
        events: queue.Queue = queue.Queue()
        clock = ClockSource(events, interval=0.01)
        clock.start()
        try:
            for _ in range(3):
                assert events.get(timeout=_WAIT) == Tick()
        finally:
            clock.stop()
            clock.join(timeout=_WAIT)
        assert not clock.is_alive()

    def test_stop_before_first_interval_emits_nothing(self) -> None:
        events: queue.Queue = queue.Queue()
        clock = ClockSource(events, interval=60.0)
        clock.start()
        clock.stop()
        clock.join(timeout=_WAIT)
        assert not clock.is_alive()
        assert events.empty()

    def test_is_daemon(self) -> None:
        assert ClockSource(queue.Queue()).daemon


# ---------------------------------------------------------------------------
# InputSource
# ---------------------------------------------------------------------------


class TestInputSource:
    """InputSource turns every key read into a KeyPress."""

    def test_emits_key_presses_in_order(self) -> None:
        events: queue.Queue = queue.Queue()
        source = InputSource(events, _scripted_reader(["e", "1", "enter"]), poll_timeout=0.01)
        source.start()
        try:
            received = [events.get(timeout=_WAIT) for _ in range(3)]
        finally:
            source.stop()
            source.join(timeout=_WAIT)
        assert received == [KeyPress("e"), KeyPress("1"), KeyPress("enter")]
        assert not source.is_alive()

    def test_timeouts_produce_no_events(self) -> None:
        events: queue.Queue = queue.Queue()
        read_key = MagicMock(return_value=None)
        source = InputSource(events, read_key, poll_timeout=0.01)
        source.start()
        threading.Event().wait(0.05)
        source.stop()
        source.join(timeout=_WAIT)
        assert events.empty()
        read_key.assert_called_with(0.01)

    def test_reader_failure_is_forwarded_and_ends_thread(self) -> None:
        events: queue.Queue = queue.Queue()
        error = OSError("tty gone")
        source = InputSource(events, MagicMock(side_effect=error), poll_timeout=0.01)
        source.start()
        source.join(timeout=_WAIT)
        assert not source.is_alive()
        assert events.get(timeout=_WAIT) == InputFailed(error)
        assert events.empty()


# ---------------------------------------------------------------------------
# EventLoop.dispatch()
# ---------------------------------------------------------------------------


class TestEventLoopDispatch:
    """dispatch() routes each event to the matching timer method."""

    def test_tick_calls_timer_tick(self) -> None:
        timer = MagicMock(spec=Timer)
        EventLoop(timer, _scripted_reader([])).dispatch(Tick())
        timer.tick.assert_called_once_with()
        timer.press.assert_not_called()

    def test_key_press_calls_timer_press(self) -> None:
        timer = MagicMock(spec=Timer)
        EventLoop(timer, _scripted_reader([])).dispatch(KeyPress("r"))
        timer.press.assert_called_once_with("r")
        timer.tick.assert_not_called()

    def test_input_failed_raises_input_error(self) -> None:
        timer = MagicMock(spec=Timer)
        error = OSError("bad fd")
        with pytest.raises(InputError) as exc_info:
            EventLoop(timer, _scripted_reader([])).dispatch(InputFailed(error))
        assert exc_info.value.__cause__ is error
        timer.press.assert_not_called()

    def test_queued_events_apply_in_order(self) -> None:
        timer = Timer(10)
        loop = EventLoop(timer, _scripted_reader([]))
        for event in (KeyPress(" "), Tick(), Tick(), KeyPress("s"), Tick()):
            loop.events.put(event)
        while not loop.events.empty():
            loop.dispatch(loop.events.get())
        assert timer.get_remaining() == 0
        assert timer.get_mode() == TimerMode.STOPPED


# ---------------------------------------------------------------------------
# EventLoop.run()
# ---------------------------------------------------------------------------


class TestEventLoopRun:
    """run() consumes events until quit and returns exit code 0."""

    def test_quit_returns_zero(self) -> None:
        timer = Timer(60)
        loop = EventLoop(timer, _scripted_reader(["q"]), tick_interval=60.0)
        assert loop.run() == 0
        assert timer.is_finished()

    def test_renders_initial_view(self) -> None:
        views = []
        timer = Timer(60, sink=views.append)
        EventLoop(timer, _scripted_reader(["q"]), tick_interval=60.0).run()
        assert views[0] == timer.get_view()

    def test_keys_are_applied_before_quit(self) -> None:
        timer = Timer(1500)
        keys = ["e", "1", "0", ":", "0", "0", "enter", "q"]
        EventLoop(timer, _scripted_reader(keys), tick_interval=60.0).run()
        assert timer.get_configured() == 600
        assert timer.get_remaining() == 600
        assert timer.get_mode() == TimerMode.IDLE

    def test_countdown_expires_through_real_ticks(self) -> None:
        expired = threading.Event()
        on_expired = MagicMock(side_effect=expired.set)
        timer = Timer(3, on_expired=on_expired, auto_start=True)

        def read_key(timeout: float) -> Optional[str]:
            return "q" if expired.wait(timeout) else None

        assert EventLoop(timer, read_key, tick_interval=0.01).run() == 0
        assert timer.get_remaining() == 0
        assert timer.get_mode() == TimerMode.IDLE
        on_expired.assert_called_once_with()

    def test_all_transitions_run_on_the_loop_thread(self) -> None:
        """Ticks and keys from two producer threads are applied by one consumer."""
        threads = set()
        rendered = []
        done = threading.Event()

        def sink(view) -> None:
            threads.add(threading.get_ident())
            rendered.append(view)
            if len(rendered) >= 10:
                done.set()

        timer = Timer(1000, sink=sink, auto_start=True)

        def read_key(timeout: float) -> Optional[str]:
            return "q" if done.wait(timeout) else "r"

        EventLoop(timer, read_key, tick_interval=0.005).run()
        assert threads == {threading.get_ident()}
        assert all(0 < view.remaining_seconds <= 1000 for view in rendered)

    def test_producers_stop_after_run(self) -> None:
        loop = EventLoop(Timer(60), _scripted_reader(["q"]), tick_interval=0.01)
        loop.run()
        loop._input.join(timeout=_WAIT)
        loop._clock.join(timeout=_WAIT)
        assert not loop._input.is_alive()
        assert not loop._clock.is_alive()

    def test_failing_key_reader_ends_run_with_input_error(self) -> None:
        """A reader that raises mid-run stops the loop instead of blocking it."""
        lost = OSError("input lost")
        keys = iter(["r"])

        def read_key(timeout: float) -> Optional[str]:
            key = next(keys, None)
            if key is None:
                raise lost
            return key

        loop = EventLoop(Timer(60), read_key, tick_interval=0.01)
        with pytest.raises(InputError, match="input lost") as exc_info:
            loop.run()
        assert exc_info.value.__cause__ is lost
        loop._clock.join(timeout=_WAIT)
        assert not loop._clock.is_alive()
        assert not loop._input.is_alive()
