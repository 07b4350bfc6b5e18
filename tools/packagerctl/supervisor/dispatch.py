"""
Log event dispatch.

Every log event from either packager stream goes through
handle_log_chunk(), which decides whether to drop it, print it, hold it
back, or treat it as a state change. The checks run in a fixed order:

    1. Known-noisy messages are dropped
    2. "Running app ... with appParams" becomes a one-line status
    3. "Dependency graph loaded." marks the packager ready
    4. Once ready, messages print immediately, colored by severity
    5. Before that, output is buffered and only shown if startup fails
"""

from typing import Callable, Optional

from ..packager.model import ERROR, INFO, WARN, LogEvent
from ..packager.stream import DEPENDENCY_GRAPH_LOADED
from ..utils.log import Terminal
from .session import SessionState

# Substrings of messages that are never shown. Duplicate-module warnings
# come from watchman/bser being present twice in node_modules; the React
# deprecation warnings are emitted by third-party libraries, not the app.
IGNORED_MESSAGES = (
    "Duplicate module name: bser",
    "Duplicate module name: fb-watchman",
    "Warning: React.createClass is no longer supported",
    "Warning: PropTypes has been moved to a separate package",
)

APP_PARAMS_MARKER = " with appParams: "
DEV_MODE_MARKER = "__DEV__ === true"

STARTUP_ERROR_HEADER = "***ERROR STARTING PACKAGER***"


def should_ignore_message(message: str) -> bool:
    return any(noisy in message for noisy in IGNORED_MESSAGES)


def handle_log_chunk(state: SessionState, chunk: LogEvent,
                     on_ready: Optional[Callable[[], None]], terminal: Terminal) -> None:
    """
    Dispatch a single log event.

    Args:
        state: Session state; packager_ready, needs_clear and log_buffer
            may be updated.
        chunk: The event to handle.
        on_ready: Called each time the dependency graph finishes loading.
        terminal: Where output goes.
    """
    message = chunk.message

    if should_ignore_message(message):
        return

    # The full manifest is not useful, only which device and which mode
    if APP_PARAMS_MARKER in message:
        if state.needs_clear:
            terminal.clear_console()
            state.needs_clear = False
        mode = "development" if DEV_MODE_MARKER in message else "production"
        terminal.with_timestamp(f"Running app on {chunk.device_name} in {mode} mode")
        return

    if message == DEPENDENCY_GRAPH_LOADED:
        state.packager_ready = True
        # Not guarded: fires again if the graph is reloaded
        if on_ready is not None:
            on_ready()
        return

    if state.packager_ready:
        text = message.strip()
        if chunk.level <= INFO:
            terminal.with_timestamp(text)
        elif chunk.level == WARN:
            terminal.with_timestamp(terminal.yellow(text))
        else:
            terminal.with_timestamp(terminal.red(text))
            # Clear the screen on the next reload after a syntax error
            state.needs_clear = "SyntaxError" in text
        return

    if chunk.level >= ERROR:
        terminal.log(terminal.yellow(STARTUP_ERROR_HEADER))
        terminal.log(state.log_buffer)
        terminal.log(terminal.red(message))
        state.log_buffer = ""
    else:
        state.log_buffer += message + "\n"
