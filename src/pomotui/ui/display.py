"""Full-screen timer display built on rich."""

from __future__ import annotations

import pyfiglet
from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from pomotui.core.duration import format_duration
from pomotui.core.timer import TimerMode, TimerView

EDIT_TITLE = "Session timer (format hh:mm:ss)"
FIGLET_FONT = "standard"

_MODE_TITLES = {
    TimerMode.IDLE: ("READY", "cyan"),
    TimerMode.RUNNING: ("FOCUS", "green"),
    TimerMode.STOPPED: ("STOPPED", "yellow"),
    TimerMode.EDITING: ("EDIT", "magenta"),
}

_IDLE_EMPTY_HINT = "e edit  •  r reset  •  s stop  •  q quit"

_FOOTER_HINTS = {
    TimerMode.IDLE: "Space start  •  e edit  •  r reset  •  s stop  •  q quit",
    TimerMode.RUNNING: "r reset  •  s stop  •  q quit",
    TimerMode.STOPPED: "e edit  •  r reset  •  q quit",
    TimerMode.EDITING: "Enter save  •  Esc cancel  •  Backspace delete  •  q quit",
}


class TimerDisplay:
    """Renders :class:`TimerView` snapshots to the terminal.

    An instance is a display sink: call it with a view to redraw.  Use it
    as a context manager to own the alternate screen for its lifetime.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._live: Live | None = None

    def __enter__(self) -> TimerDisplay:
        self._live = Live(
            Text(""),
            console=self.console,
            screen=True,
            auto_refresh=False,
        )
        self._live.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def __call__(self, view: TimerView) -> None:
        layout = self.create_layout(view)
        if self._live is None:
            self.console.print(layout)
        else:
            self._live.update(layout, refresh=True)

    def create_layout(self, view: TimerView) -> Layout:
        """Create the timer layout with all components."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        title, color = _MODE_TITLES[view.mode]
        header_text = Text(f"🍅  {title}", style=f"bold {color}", justify="center")
        layout["header"].update(Align.center(header_text, vertical="middle"))

        layout["body"].update(Align.center(self._create_body_content(view), vertical="middle"))

        footer_text = Text(_footer_hint(view), style="dim", justify="center")
        layout["footer"].update(Align.center(footer_text, vertical="middle"))

        return layout

    def _create_body_content(self, view: TimerView) -> Group:
        components = []

        _, color = _MODE_TITLES[view.mode]
        timer_panel = Panel(
            big_text(view.remaining_text, style=f"bold {color}"),
            subtitle=f"of {format_duration(view.configured_seconds)}",
            border_style=color,
            padding=(0, 2),
            expand=False,
        )
        components.append(Align.center(timer_panel))

        if view.mode == TimerMode.EDITING:
            components.append(Text(""))
            components.append(
                Align.center(
                    Panel(
                        Text(view.edit_buffer + "▏"),
                        title=EDIT_TITLE,
                        width=40,
                    )
                )
            )

        if view.notice:
            components.append(Text(""))
            components.append(Text(view.notice, style="bold red", justify="center"))

        return Group(*components)


def big_text(text: str, style: str = "") -> Text:
    """Render *text* as FIGlet banner lines, left-aligned so columns line up."""
    banner = pyfiglet.figlet_format(text, font=FIGLET_FONT).rstrip("\n")
    return Text(banner, style=style, justify="left", no_wrap=True, overflow="crop")


def _footer_hint(view: TimerView) -> str:
    # Start is a no-op with nothing left to count down.
    if view.mode == TimerMode.IDLE and view.remaining_seconds == 0:
        return _IDLE_EMPTY_HINT
    return _FOOTER_HINTS[view.mode]
