"""Event loop: serializes clock ticks and key presses onto one timer.

Two daemon threads produce events: :class:`ClockSource` on a fixed period
and :class:`InputSource` as keys arrive.  Both only ever put events on a
shared :class:`queue.Queue`; :class:`EventLoop` is the sole consumer and the
only code that calls into the :class:`~pomotui.core.timer.Timer`.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from pomotui.core.timer import Timer

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0
_INPUT_POLL_TIMEOUT = 0.1

KeyReader = Callable[[float], Optional[str]]


@dataclass(frozen=True)
class Tick:
    """One clock period has elapsed."""


@dataclass(frozen=True)
class KeyPress:
    """A key was pressed; *key* is a character or a key name like ``"enter"``."""

    key: str


@dataclass(frozen=True)
class InputFailed:
    """The key reader raised; the input source has stopped."""

    error: BaseException


Event = Union[Tick, KeyPress, InputFailed]


class InputError(Exception):
    """Raised by the event loop when keyboard input can no longer be read."""


class ClockSource(threading.Thread):
    """Puts a :class:`Tick` on *events* every *interval* seconds."""

    def __init__(self, events: queue.Queue[Event], interval: float = TICK_INTERVAL) -> None:
        super().__init__(name="pomotui-clock", daemon=True)
        self._events = events
        self._interval = interval
        self._stopped = threading.Event()

    def run(self) -> None:
        # Deadlines come from a fixed schedule so late wake-ups do not drift.
        next_deadline = time.monotonic() + self._interval
        while not self._stopped.wait(max(next_deadline - time.monotonic(), 0.0)):
            self._events.put(Tick())
            next_deadline += self._interval

    def stop(self) -> None:
        self._stopped.set()


class InputSource(threading.Thread):
    """Puts a :class:`KeyPress` on *events* for every key *read_key* returns.

    *read_key* is called with a poll timeout and returns ``None`` when no
    key arrived in time, so the thread notices :meth:`stop` promptly.
    """

    def __init__(
        self,
        events: queue.Queue[Event],
        read_key: KeyReader,
        poll_timeout: float = _INPUT_POLL_TIMEOUT,
    ) -> None:
        super().__init__(name="pomotui-input", daemon=True)
        self._events = events
        self._read_key = read_key
        self._poll_timeout = poll_timeout
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.is_set():
            try:
                key = self._read_key(self._poll_timeout)
            except Exception as exc:
                # The consumer re-raises this on its own thread.
                logger.error("key reader failed: %s", exc)
                self._events.put(InputFailed(exc))
                return
            if key is not None:
                self._events.put(KeyPress(key))

    def stop(self) -> None:
        self._stopped.set()


class EventLoop:
    """Consumes tick and key events one at a time and applies them to *timer*."""

    def __init__(
        self,
        timer: Timer,
        read_key: KeyReader,
        tick_interval: float = TICK_INTERVAL,
    ) -> None:
        self._timer = timer
        self._events: queue.Queue[Event] = queue.Queue()
        self._clock = ClockSource(self._events, tick_interval)
        self._input = InputSource(self._events, read_key)

    @property
    def events(self) -> queue.Queue[Event]:
        return self._events

    def dispatch(self, event: Event) -> None:
        """Apply a single *event* to the timer.

        Raises :class:`InputError` for an :class:`InputFailed` event.
        """
        if isinstance(event, Tick):
            self._timer.tick()
        elif isinstance(event, KeyPress):
            self._timer.press(event.key)
        elif isinstance(event, InputFailed):
            raise InputError(f"cannot read keyboard input: {event.error}") from event.error

    def run(self) -> int:
        """Run until the timer reports it is finished and return the exit code.

        Raises :class:`InputError` once the key reader fails; the producers
        are stopped first.
        """
        self._timer.render()
        self._clock.start()
        self._input.start()
        logger.debug("event loop started")
        try:
            while not self._timer.is_finished():
                self.dispatch(self._events.get())
        finally:
            self._clock.stop()
            self._input.stop()
            self._input.join(timeout=1.0)
        logger.debug("event loop finished")
        return 0
