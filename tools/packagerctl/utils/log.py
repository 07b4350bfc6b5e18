"""
Terminal output for the packager supervisor.

Everything packagerctl prints while the packager runs goes through a
Terminal so that three things stay consistent:

    - Timestamps: status lines are prefixed with a dimmed [HH:MM:SS]
    - Colors: ANSI SGR codes, only when writing to a TTY and NO_COLOR is unset
    - Progress bar: while a bundle progress bar is registered, every printed
      line first erases the bar and then re-renders it underneath, so log
      output and the bar never end up interleaved on one line

The module exposes a shared default Terminal plus module-level shortcuts
(log, with_timestamp, set_bundle_progress_bar) for call sites that do not
need their own instance. Tests construct a Terminal around io.StringIO.
"""

import datetime
import os
import sys
from typing import Optional, TextIO

# ANSI SGR codes for the handful of colors the supervisor uses
ANSI_CODES = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "cyan": "36",
    "dim": "2",
}

# Erase the current line and return the cursor to column 0
ERASE_LINE = "\r\x1b[2K"

# Clear screen, clear scrollback, move cursor home
CLEAR_SCREEN = "\x1b[2J\x1b[3J\x1b[H"


def supports_color(stream: TextIO) -> bool:
    """
    Decide whether ANSI colors should be written to a stream.

    Honors the NO_COLOR convention (https://no-color.org) and
    FORCE_COLOR, then falls back to whether the stream is a TTY.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class Terminal:
    """
    Line-oriented terminal writer aware of an active progress bar.

    Attributes:
        bundle_progress_bar: The progress bar currently drawn on the last
            terminal line, or None. Set through set_bundle_progress_bar().

    Example:
        >>> out = Terminal(io.StringIO(), color=False)
        >>> out.with_timestamp("Starting packager...")
    """

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        # None means "whatever sys.stdout is at write time" so that
        # redirections made after construction are still honored
        self._stream = stream
        self._color = color
        self.bundle_progress_bar = None

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @property
    def color(self) -> bool:
        if self._color is None:
            return supports_color(self.stream)
        return self._color

    # --------------------------------------------------------
    # Colors
    # --------------------------------------------------------

    def paint(self, name: str, text: str) -> str:
        """Wrap text in the ANSI code for a named color, if colors are on."""
        if not self.color:
            return text
        return f"\x1b[{ANSI_CODES[name]}m{text}\x1b[0m"

    def red(self, text: str) -> str:
        return self.paint("red", text)

    def green(self, text: str) -> str:
        return self.paint("green", text)

    def yellow(self, text: str) -> str:
        return self.paint("yellow", text)

    def cyan(self, text: str) -> str:
        return self.paint("cyan", text)

    def dim(self, text: str) -> str:
        return self.paint("dim", text)

    # --------------------------------------------------------
    # Output
    # --------------------------------------------------------

    def _write_line(self, text: str) -> None:
        bar = self.bundle_progress_bar
        stream = self.stream

        if bar is not None:
            # Move the bar out of the way before printing over its line
            stream.write(ERASE_LINE)

        stream.write(f"{text}\n")

        if bar is not None and not bar.complete:
            bar.render()

        stream.flush()

    def log(self, message: str = "") -> None:
        """Print a message as-is."""
        self._write_line(message)

    def with_timestamp(self, message: str) -> None:
        """Print a message prefixed with the local wall-clock time."""
        now = datetime.datetime.now().strftime("%H:%M:%S")
        self._write_line(f"{self.dim(f'[{now}]')} {message}")

    def set_bundle_progress_bar(self, bar) -> None:
        """Register (or, with None, unregister) the active progress bar."""
        self.bundle_progress_bar = bar

    def clear_console(self) -> None:
        """Clear the screen, used after a syntax error is fixed and the app reloads."""
        self.stream.write(CLEAR_SCREEN)
        self.stream.flush()


# Shared instance used by the CLI and the runner
terminal = Terminal()


def log(message: str = "") -> None:
    terminal.log(message)


def with_timestamp(message: str) -> None:
    terminal.with_timestamp(message)


def set_bundle_progress_bar(bar) -> None:
    terminal.set_bundle_progress_bar(bar)
