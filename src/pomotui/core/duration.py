"""Duration parsing and formatting for ``hh:mm:ss`` / ``mm:ss`` strings."""

from __future__ import annotations

SECS_IN_MIN = 60
SECS_IN_HOUR = 3600

_MAX_SUBFIELD_DIGITS = 2


class MalformedDurationError(ValueError):
    """Raised when a time string does not match ``hh:mm:ss`` or ``mm:ss``."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"invalid duration {text!r}: {reason}")
        self.text = text
        self.reason = reason


def _parse_field(text: str, field: str, name: str, max_digits: int | None) -> int:
    """Return the integer value of one colon-separated *field*."""
    if not field:
        raise MalformedDurationError(text, f"{name} field is empty")
    # str.isdigit() also accepts non-ASCII digits such as superscripts.
    if not (field.isascii() and field.isdigit()):
        raise MalformedDurationError(text, f"{name} field {field!r} is not a number")
    if max_digits is not None and len(field) > max_digits:
        raise MalformedDurationError(
            text, f"{name} field {field!r} has more than {max_digits} digits"
        )
    return int(field)


def parse_duration(text: str) -> int:
    """Parse *text* as ``hh:mm:ss`` or ``mm:ss`` and return total seconds.

    Minutes and seconds are one or two digits below 60; hours are any
    number of digits.  Raises :class:`MalformedDurationError` otherwise.
    """
    stripped = text.strip()
    if not stripped:
        raise MalformedDurationError(text, "empty string")

    fields = stripped.split(":")
    if len(fields) == 2:
        hours_field = None
        minutes_field, seconds_field = fields
    elif len(fields) == 3:
        hours_field, minutes_field, seconds_field = fields
    else:
        raise MalformedDurationError(
            text, f"expected 2 or 3 colon-separated fields, got {len(fields)}"
        )

    hours = _parse_field(text, hours_field, "hours", None) if hours_field is not None else 0
    minutes = _parse_field(text, minutes_field, "minutes", _MAX_SUBFIELD_DIGITS)
    seconds = _parse_field(text, seconds_field, "seconds", _MAX_SUBFIELD_DIGITS)

    if minutes >= 60:
        raise MalformedDurationError(text, f"minutes must be below 60, got {minutes}")
    if seconds >= 60:
        raise MalformedDurationError(text, f"seconds must be below 60, got {seconds}")

    return hours * SECS_IN_HOUR + minutes * SECS_IN_MIN + seconds


def format_duration(seconds: int) -> str:
    """Format *seconds* as ``hh:mm:ss`` when at least an hour, else ``mm:ss``."""
    if seconds < 0:
        raise ValueError(f"seconds must be non-negative, got {seconds}")
    hours, rest = divmod(seconds, SECS_IN_HOUR)
    minutes, secs = divmod(rest, SECS_IN_MIN)
    if hours == 0:
        return f"{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
