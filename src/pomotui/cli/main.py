"""CLI entry point for pomotui.

Uses Click to expose the ``pomotui`` command, which wires the keyboard
reader, the rich display and the timer into one event loop.
"""

from __future__ import annotations

import sys
from typing import Callable, Optional, TypeVar

import click

import pomotui
from pomotui.core.duration import MalformedDurationError, format_duration, parse_duration
from pomotui.core.loop import EventLoop, InputError
from pomotui.core.timer import DEFAULT_DURATION_SECONDS, Timer
from pomotui.logger import get_logger
from pomotui.ui.display import TimerDisplay
from pomotui.ui.keyboard import KeyboardReader, TerminalError

T = TypeVar("T")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class DurationType(click.ParamType):
    """Click parameter type for ``hh:mm:ss`` / ``mm:ss`` durations."""

    name = "duration"

    def convert(
        self, value: object, param: Optional[click.Parameter], ctx: Optional[click.Context]
    ) -> int:
        if isinstance(value, int):
            return value
        try:
            return parse_duration(str(value))
        except MalformedDurationError as exc:
            self.fail(f"{exc.reason} (expected hh:mm:ss or mm:ss)", param, ctx)


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting terminal failures to a CLI error.

    On ``TerminalError`` or ``InputError`` the message is printed to stderr
    and the process exits with code 1.
    """
    try:
        return action()
    except (TerminalError, InputError) as exc:
        get_logger().error("terminal failure: %s", exc)
        click.echo(f"pomotui: {exc}", err=True)
        sys.exit(1)


def _run_timer(duration: int, start: bool) -> int:
    with KeyboardReader() as keyboard, TimerDisplay() as display:
        timer = Timer(duration, sink=display, auto_start=start)
        return EventLoop(timer, keyboard.read_key).run()


@click.command()
@click.argument(
    "duration",
    type=DurationType(),
    default=format_duration(DEFAULT_DURATION_SECONDS),
)
@click.option("--start", is_flag=True, help="Start counting down immediately.")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Level for the log file under the user log directory.",
)
@click.version_option(version=pomotui.__version__, prog_name="pomotui")
def cli(duration: int, start: bool, log_level: str) -> None:
    """pomotui: a terminal Pomodoro timer counting down from DURATION.

    DURATION is hh:mm:ss or mm:ss (default 25:00).  Keys: Space start,
    e edit, r reset, s stop, q quit.
    """
    logger = get_logger(log_level.upper())
    logger.info("starting with duration %s", format_duration(duration))
    exit_code = _run(lambda: _run_timer(duration, start))
    sys.exit(exit_code)
