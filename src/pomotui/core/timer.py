"""Timer core — a tick-driven countdown state machine with an edit sub-mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from pomotui.core.duration import MalformedDurationError, format_duration, parse_duration

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 25 * 60

KEY_ENTER = "enter"
KEY_ESCAPE = "escape"
KEY_BACKSPACE = "backspace"
KEY_START = " "

KEY_EDIT = "e"
KEY_RESET = "r"
KEY_STOP = "s"
KEY_QUIT = "q"

INVALID_FORMAT_NOTICE = "Invalid format, expected hh:mm:ss or mm:ss"
EXPIRED_NOTICE = "Time's up!"


class TimerMode(Enum):
    """Possible modes of the timer."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    EDITING = "editing"


@dataclass(frozen=True)
class TimerView:
    """Snapshot of everything the display needs to draw the timer."""

    mode: TimerMode
    remaining_seconds: int
    configured_seconds: int
    edit_buffer: str = ""
    notice: Optional[str] = None

    @property
    def remaining_text(self) -> str:
        return format_duration(self.remaining_seconds)


DisplaySink = Callable[[TimerView], None]

_STARTABLE_MODES = frozenset({TimerMode.IDLE, TimerMode.STOPPED})
_EDITABLE_MODES = frozenset({TimerMode.IDLE, TimerMode.STOPPED})


class Timer:
    """A countdown timer driven by discrete tick and key events.

    The timer never reads a clock itself: each :meth:`tick` is one elapsed
    second.  All mutation happens through :meth:`tick` and :meth:`press`,
    and every change is pushed to *sink* as a :class:`TimerView` before the
    method returns.
    """

    def __init__(
        self,
        configured_seconds: int = DEFAULT_DURATION_SECONDS,
        *,
        sink: DisplaySink | None = None,
        on_expired: Callable[[], None] | None = None,
        auto_start: bool = False,
    ) -> None:
        if not isinstance(configured_seconds, int):
            raise TypeError(
                "configured_seconds must be an integer, "
                f"got {type(configured_seconds).__name__}"
            )
        if configured_seconds < 0:
            raise ValueError(f"configured_seconds must be non-negative, got {configured_seconds}")

        self._configured_seconds: int = configured_seconds
        self._remaining_seconds: int = configured_seconds
        self._mode: TimerMode = TimerMode.IDLE
        self._edit_buffer: str = ""
        self._notice: str | None = None
        self._finished: bool = False
        self._sink = sink
        self._on_expired = on_expired

        if auto_start and configured_seconds > 0:
            self._mode = TimerMode.RUNNING

    # -- public interface ----------------------------------------------------

    def tick(self) -> None:
        """Advance the countdown by one second.  No-op unless RUNNING."""
        if self._mode != TimerMode.RUNNING:
            return

        self._remaining_seconds = max(self._remaining_seconds - 1, 0)
        self._notice = None
        if self._remaining_seconds == 0:
            self._mode = TimerMode.IDLE
            self._notice = EXPIRED_NOTICE
            logger.info("countdown of %ds expired", self._configured_seconds)
            if self._on_expired is not None:
                self._on_expired()
        self.render()

    def press(self, key: str) -> None:
        """Apply a single key press to the timer."""
        if key == KEY_QUIT:
            logger.debug("quit requested from %s mode", self._mode.value)
            self._finished = True
            return

        if self._mode == TimerMode.EDITING:
            self._press_editing(key)
        elif key == KEY_EDIT:
            self._enter_edit()
        elif key == KEY_RESET:
            self._reset()
        elif key == KEY_STOP:
            self._stop()
        elif key in (KEY_START, KEY_ENTER):
            self._start()

    def get_mode(self) -> TimerMode:
        """Return the current timer mode."""
        return self._mode

    def get_remaining(self) -> int:
        """Return the remaining time in whole seconds."""
        return self._remaining_seconds

    def get_configured(self) -> int:
        """Return the duration the timer counts down from."""
        return self._configured_seconds

    def get_edit_buffer(self) -> str:
        return self._edit_buffer

    def get_notice(self) -> str | None:
        return self._notice

    def get_view(self) -> TimerView:
        """Return an immutable snapshot of the current state."""
        return TimerView(
            mode=self._mode,
            remaining_seconds=self._remaining_seconds,
            configured_seconds=self._configured_seconds,
            edit_buffer=self._edit_buffer,
            notice=self._notice,
        )

    def is_finished(self) -> bool:
        """Return ``True`` once quit has been requested."""
        return self._finished

    def render(self) -> None:
        """Push the current view to the display sink, if any."""
        if self._sink is not None:
            self._sink(self.get_view())

    # -- transitions ---------------------------------------------------------

    def _start(self) -> None:
        if self._mode not in _STARTABLE_MODES or self._remaining_seconds == 0:
            return
        self._notice = None
        self._set_mode(TimerMode.RUNNING)
        self.render()

    def _reset(self) -> None:
        self._remaining_seconds = self._configured_seconds
        if self._mode == TimerMode.STOPPED:
            self._set_mode(TimerMode.IDLE)
        self._notice = None
        self.render()

    def _stop(self) -> None:
        self._remaining_seconds = 0
        self._set_mode(TimerMode.STOPPED)
        self._notice = None
        self.render()

    def _enter_edit(self) -> None:
        if self._mode not in _EDITABLE_MODES:
            return
        self._edit_buffer = ""
        self._notice = None
        self._set_mode(TimerMode.EDITING)
        self.render()

    def _press_editing(self, key: str) -> None:
        if key == KEY_ENTER:
            self._commit_edit()
        elif key == KEY_ESCAPE:
            self._leave_edit()
            self.render()
        elif key == KEY_BACKSPACE:
            if self._edit_buffer:
                self._edit_buffer = self._edit_buffer[:-1]
                self.render()
        elif key in (KEY_RESET, KEY_STOP, KEY_START):
            return
        elif len(key) == 1 and key.isprintable():
            self._edit_buffer += key
            self.render()

    def _commit_edit(self) -> None:
        text = self._edit_buffer
        try:
            seconds = parse_duration(text)
        except MalformedDurationError as exc:
            logger.info("rejected edit: %s", exc)
            self._leave_edit()
            self._notice = INVALID_FORMAT_NOTICE
        else:
            logger.info("duration set to %s", format_duration(seconds))
            self._configured_seconds = seconds
            self._remaining_seconds = seconds
            self._leave_edit()
        self.render()

    # -- private helpers -----------------------------------------------------

    def _leave_edit(self) -> None:
        """Discard the edit buffer and return to IDLE."""
        self._edit_buffer = ""
        self._notice = None
        self._set_mode(TimerMode.IDLE)

    def _set_mode(self, mode: TimerMode) -> None:
        if mode != self._mode:
            logger.debug("mode %s -> %s", self._mode.value, mode.value)
        self._mode = mode
