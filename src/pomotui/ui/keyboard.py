"""Raw terminal keyboard input for the timer controls."""

from __future__ import annotations

import logging
import os
import select
import sys
import termios
import tty
from typing import IO, Optional

logger = logging.getLogger(__name__)

# Time to wait for the rest of an escape sequence after a lone ESC byte.
_ESCAPE_SEQUENCE_TIMEOUT = 0.05
# Longest CSI/SS3 tail consumed before giving up on finding a final byte.
_MAX_ESCAPE_LENGTH = 16

UNKNOWN_KEY = "unknown"

_SPECIAL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
}

_ARROW_KEYS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
}


class TerminalError(Exception):
    """Raised when the terminal cannot be set up for raw key input."""


class KeyboardReader:
    """Non-blocking single-key reader over a terminal in cbreak mode.

    Use as a context manager; the previous terminal settings are restored
    on exit.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._fd: int | None = None
        self._old_settings: list | None = None

    def __enter__(self) -> KeyboardReader:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        """Put the terminal in cbreak mode.  Raises :class:`TerminalError`."""
        try:
            fd = self._stream.fileno()
        except (AttributeError, OSError, ValueError) as exc:
            raise TerminalError(f"standard input has no file descriptor: {exc}") from exc
        if not os.isatty(fd):
            raise TerminalError("standard input is not a terminal")
        try:
            self._old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error as exc:
            raise TerminalError(f"cannot switch terminal to cbreak mode: {exc}") from exc
        self._fd = fd
        logger.debug("terminal on fd %d switched to cbreak mode", fd)

    def close(self) -> None:
        """Restore the terminal settings saved by :meth:`open`."""
        if self._fd is None or self._old_settings is None:
            return
        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)
        except termios.error:
            logger.warning("failed to restore terminal settings", exc_info=True)
        self._fd = None
        self._old_settings = None

    def read_key(self, timeout: float) -> Optional[str]:
        """Wait up to *timeout* seconds for a key and return its name.

        Returns ``None`` when no key arrived in time.
        """
        if self._fd is None:
            raise TerminalError("keyboard reader is not open")
        if not self._ready(timeout):
            return None
        char = self._read_char()
        if not char:
            return None
        if char == "\x1b":
            return self._read_escape()
        return decode_key(char)

    # -- private helpers -----------------------------------------------------

    def _ready(self, timeout: float) -> bool:
        readable, _, _ = select.select([self._fd], [], [], timeout)
        return bool(readable)

    def _read_char(self) -> str:
        # Read straight from the descriptor; a buffered text stream would
        # swallow the tail of an escape sequence where select cannot see it.
        data = os.read(self._fd, 1)
        if not data:
            return ""
        for _ in range(_utf8_length(data[0]) - 1):
            if not self._ready(_ESCAPE_SEQUENCE_TIMEOUT):
                break
            data += os.read(self._fd, 1)
        return data.decode("utf-8", errors="replace")

    def _read_escape(self) -> str:
        """Decode what follows an ESC byte.

        CSI (``ESC [``) and SS3 (``ESC O``) sequences are consumed up to
        their final byte, so modified keys such as ``ESC [1;5A`` never leak
        parameter characters.  Arrows map to their names, anything else to
        :data:`UNKNOWN_KEY`; a lone ESC is ``"escape"``.
        """
        if not self._ready(_ESCAPE_SEQUENCE_TIMEOUT):
            return "escape"
        if self._read_char() not in ("[", "O"):
            return "escape"
        for _ in range(_MAX_ESCAPE_LENGTH):
            if not self._ready(_ESCAPE_SEQUENCE_TIMEOUT):
                break
            char = self._read_char()
            if "\x40" <= char <= "\x7e":
                return _ARROW_KEYS.get(char, UNKNOWN_KEY)
        logger.debug("discarded unterminated escape sequence")
        return UNKNOWN_KEY


def decode_key(char: str) -> str:
    """Map a single input character to the key name the timer understands."""
    return _SPECIAL_KEYS.get(char, char)


def _utf8_length(lead: int) -> int:
    """Return the byte length of the UTF-8 sequence starting with *lead*."""
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1
