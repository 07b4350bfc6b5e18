"""
Abstract control surface of the mobile packager.

The supervisor only needs a handful of operations from the packager:
start it, stop it, find out which process it is, and subscribe to the
two independent streams of log events it produces. Keeping this as an
abstract base class lets the supervisor be exercised against a test
double without spawning anything.

Event delivery contract:
    Implementations may produce events on any thread, but they must only
    invoke subscriber callbacks from inside process_events(), which the
    supervisor calls from its own (single) thread. This is what keeps
    the dispatcher and progress tracker free of locking.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional

from .model import LogEvent, ProcessInfo, StartOptions

# An updater receives the existing chunk list and returns it with the new
# batch appended; the server stream hands one of these to update_logs.
LogUpdater = Callable[[List[LogEvent]], List[LogEvent]]


class PackagerError(Exception):
    """Base error type for packager operations."""


class PackagerStartError(PackagerError):
    """Raised when the packager process cannot be started."""


class PackagerNotRunningError(PackagerError):
    """Raised when no packager process is recorded for a project."""


class Packager(ABC):
    """
    Interface every packager implementation provides.

    All methods take the project directory explicitly, mirroring the
    fact that one packager serves exactly one project.
    """

    @abstractmethod
    def start(self, project_dir: Path, options: StartOptions) -> None:
        """Start the packager. Raises PackagerStartError on failure."""

    @abstractmethod
    def stop(self, project_dir: Path) -> None:
        """Stop the packager gracefully. May block for an arbitrary time."""

    @abstractmethod
    def read_process_info(self, project_dir: Path) -> ProcessInfo:
        """Return the recorded process info for the project's packager."""

    @abstractmethod
    def watch_server_logs(
        self,
        project_dir: Path,
        on_start_build_bundle: Callable[[], None],
        on_progress_build_bundle: Callable[[float], None],
        on_finish_build_bundle: Callable[[Optional[str], Optional[int], Optional[int]], None],
        update_logs: Callable[[LogUpdater], None],
    ) -> None:
        """
        Subscribe to server/bundler events.

        Build lifecycle events are delivered through the three build
        callbacks. Log lines are delivered in batches: update_logs is
        called with an updater which, applied to an empty list, yields
        the new chunks.
        """

    @abstractmethod
    def attach_logger_stream(self, project_dir: Path, write: Callable[[LogEvent], None]) -> None:
        """
        Subscribe a raw writer to every log event, one call per event.

        The writer sees server and device events alike and is expected to
        filter on LogEvent.tag itself.
        """

    @abstractmethod
    def process_events(self, timeout: float) -> bool:
        """
        Deliver pending events to subscribers, waiting up to timeout seconds.

        Returns:
            bool: True while the packager is still running.
        """

    @property
    @abstractmethod
    def returncode(self) -> Optional[int]:
        """Exit status of the packager once it has exited, otherwise None."""
