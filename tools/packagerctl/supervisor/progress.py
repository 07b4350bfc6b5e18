"""
Bundle build progress tracking.

The packager reports three lifecycle events per bundle build (start,
progress, finish). They drive a single one-line progress bar drawn on
the terminal:

    Building JavaScript bundle [=========           ] 45%

Design Decisions:
    - The bar only moves forward; out-of-order or repeated progress
      reports are ignored rather than redrawn
    - The bar is registered with the Terminal while active so log lines
      printed mid-build are written above it instead of over it
    - When watchman restarts mid-build the packager never reports the
      build as finished, so update_logs() watches for that message and
      closes the bar itself
"""

from typing import Callable, List, Optional

from ..packager.model import LogEvent
from ..utils.log import ERASE_LINE, Terminal

# Message the packager logs when watchman restarts
WATCHMAN_RESTARTED = "Restarted watchman."

BUNDLE_BAR_FORMAT = "Building JavaScript bundle [:bar] :percent"


class ProgressBar:
    """
    Minimal terminal progress bar.

    The format string supports two tokens: ":bar" for the bar itself and
    ":percent" for the rounded completion percentage.

    Attributes:
        fmt: Format string.
        total: Value at which the bar is complete.
        curr: Current position.
        complete: True once curr reaches total.
        clear: Erase the bar's line on completion instead of leaving it.
    """

    def __init__(self, fmt: str, total: int, terminal: Terminal, width: int = 40,
                 complete_char: str = "=", incomplete_char: str = " ", clear: bool = True):
        self.fmt = fmt
        self.total = total
        self.terminal = terminal
        self.width = width
        self.complete_char = complete_char
        self.incomplete_char = incomplete_char
        self.clear = clear
        self.curr = 0
        self.complete = False

    def tick(self, delta: float = 1) -> None:
        """Advance the bar by delta, completing it when it reaches total."""
        if self.complete:
            return

        self.curr = min(self.curr + delta, self.total)
        self.render()

        if self.curr >= self.total:
            self.complete = True
            self.terminate()

    def render(self) -> None:
        ratio = self.curr / self.total if self.total else 1.0
        filled = int(round(self.width * ratio))
        bar = self.complete_char * filled + self.incomplete_char * (self.width - filled)
        text = self.fmt.replace(":bar", bar).replace(":percent", f"{int(ratio * 100)}%")

        stream = self.terminal.stream
        stream.write(f"{ERASE_LINE}{text}")
        stream.flush()

    def terminate(self) -> None:
        stream = self.terminal.stream
        stream.write(ERASE_LINE if self.clear else "\n")
        stream.flush()


# ============================================================
# Build lifecycle callbacks
# ============================================================

def on_start_build_bundle(state, terminal: Terminal) -> ProgressBar:
    """Start a fresh progress bar for a new build, replacing any previous one."""
    state.progress_bar = ProgressBar(BUNDLE_BAR_FORMAT, total=100, terminal=terminal)
    terminal.set_bundle_progress_bar(state.progress_bar)
    return state.progress_bar


def on_progress_build_bundle(state, percent: float) -> None:
    """
    Move the progress bar to percent.

    Ignored when no build is in flight or the bar already completed.
    Never moves backwards.
    """
    bar = state.progress_bar
    if bar is None or bar.complete:
        return

    ticks = percent - bar.curr
    if ticks > 0:
        bar.tick(ticks)


def on_finish_build_bundle(state, err: Optional[str], start_time: Optional[int],
                           end_time: Optional[int], terminal: Terminal) -> None:
    """
    Close the progress bar and report how the build went.

    Args:
        err: Failure reason, or None if the build succeeded.
        start_time: Build start in milliseconds, or None if the build was not timed.
        end_time: Build end in milliseconds, or None if the build was not timed.
    """
    bar = state.progress_bar
    if bar is not None and not bar.complete:
        bar.tick(100 - bar.curr)

    if bar is None:
        return

    terminal.set_bundle_progress_bar(None)
    state.progress_bar = None

    if err:
        terminal.with_timestamp(terminal.red("Failed building JavaScript bundle"))
    elif start_time is None or end_time is None:
        terminal.with_timestamp(terminal.green("Finished building JavaScript bundle"))
    else:
        duration = end_time - start_time
        terminal.with_timestamp(terminal.green(f"Finished building JavaScript bundle in {duration}ms"))


def update_logs(state, updater: Callable[[List[LogEvent]], List[LogEvent]],
                handle_chunk: Callable[[LogEvent], None], terminal: Terminal) -> None:
    """
    Handle a batch of server log chunks.

    A "Restarted watchman." chunk while a build is in flight means the
    finish callback will never come, so the bar is closed as a failure
    here. Every chunk is then dispatched in order.
    """
    chunks = updater([])

    if state.progress_bar is not None:
        for chunk in chunks:
            if chunk.message == WATCHMAN_RESTARTED and state.progress_bar is not None:
                bar = state.progress_bar
                bar.tick(bar.total - bar.curr)
                terminal.set_bundle_progress_bar(None)
                state.progress_bar = None
                terminal.with_timestamp(terminal.red("Failed building JavaScript bundle"))

    for chunk in chunks:
        handle_chunk(chunk)
