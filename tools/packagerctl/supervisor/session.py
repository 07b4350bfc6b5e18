"""
Session state shared by the log dispatcher and the build progress tracker.

Kept as one explicit value passed into every callback rather than as
closure variables, so that the dispatcher and the tracker can be driven
directly in tests.
"""

from dataclasses import dataclass
from typing import Optional

from .progress import ProgressBar


@dataclass
class SessionState:
    """
    Mutable state of one supervisor session.

    Attributes:
        packager_ready: Set once "Dependency graph loaded." is seen. Never reset.
        needs_clear: Set when the last error was a SyntaxError; the terminal is
            cleared the next time the app starts running.
        log_buffer: Output collected before the packager is ready, printed
            only if startup fails.
        progress_bar: The bundle progress bar of the build in flight, if any.
    """
    packager_ready: bool = False
    needs_clear: bool = False
    log_buffer: str = ""
    progress_bar: Optional[ProgressBar] = None
