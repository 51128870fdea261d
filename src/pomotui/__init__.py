"""pomotui: a terminal Pomodoro countdown timer."""

__version__ = "0.1.0"
