"""
Interrupt handling and packager shutdown.

The supervisor has two states, running and stopping. Ctrl+C (SIGINT)
moves it to stopping, after which it tries to take the packager down
and then exits packagerctl:

    1. Ask the packager to stop, allowing STOP_TIMEOUT seconds
    2. If that did not finish in time, look up the recorded pid and
       SIGTERM it directly
    3. If even that fails, exit with status 1

A stop call that misses the deadline is abandoned, not cancelled: it
keeps running on its daemon thread and whatever it eventually does has
no effect on the shutdown path already taken.
"""

import os
import signal
import sys
import threading
from pathlib import Path
from typing import Callable, Optional

from ..packager.base import Packager, PackagerError, PackagerNotRunningError
from ..packager.settings import clear_packager_info
from ..utils.log import Terminal
from ..utils.sessionlog import SessionLogger

# Seconds a graceful stop may take before the packager is killed
STOP_TIMEOUT = 1.0

RUNNING = "running"
STOPPING = "stopping"


def stop_with_deadline(stop: Callable[[], None], timeout: float) -> bool:
    """
    Race stop() against a deadline.

    Returns:
        bool: True if stop() returned normally within timeout. False if it
        is still running (it is left to finish on its own) or it raised.
    """
    outcome = {}

    def _attempt():
        try:
            stop()
        except Exception as e:
            # A failed stop loses the race the same way a slow one does
            outcome["error"] = e
        else:
            outcome["stopped"] = True

    thread = threading.Thread(target=_attempt, name="packager-stop", daemon=True)
    thread.start()
    thread.join(timeout)

    return outcome.get("stopped", False)


def kill_recorded_packager(packager: Packager, project_dir: Path) -> int:
    """
    SIGTERM the packager pid recorded in the project settings, then forget it.

    Returns:
        int: The pid that was signalled.

    Raises:
        PackagerNotRunningError: No pid is recorded.
        OSError: The process could not be signalled.
    """
    info = packager.read_process_info(project_dir)
    if info.packager_pid is None:
        raise PackagerNotRunningError(f"No packager pid recorded for {project_dir}")
    os.kill(info.packager_pid, signal.SIGTERM)
    # A signalled pid can be reused by the OS, so stop recording it
    clear_packager_info(project_dir)
    return info.packager_pid


def clean_up_packager(packager: Packager, project_dir: Path, timeout: float = STOP_TIMEOUT,
                      logger: Optional[SessionLogger] = None) -> None:
    """
    Stop the packager, escalating to a kill if a graceful stop hangs.

    Exits the whole process with status 1 if the kill fails.
    """
    if stop_with_deadline(lambda: packager.stop(project_dir), timeout):
        return

    try:
        pid = kill_recorded_packager(packager, project_dir)
    except (OSError, ValueError, PackagerError) as e:
        if logger is not None:
            logger.error("packagerctl", f"Unable to kill packager: {e}")
        sys.exit(1)

    if logger is not None:
        logger.warn("packagerctl", f"Packager did not stop within {timeout}s, sent SIGTERM to pid {pid}")


class ExitHooks:
    """
    SIGINT handler driving the running -> stopping transition.

    Attributes:
        state: RUNNING or STOPPING.
    """

    def __init__(self, packager: Packager, project_dir: Path, terminal: Terminal,
                 timeout: float = STOP_TIMEOUT, logger: Optional[SessionLogger] = None):
        self.packager = packager
        self.project_dir = project_dir
        self.terminal = terminal
        self.timeout = timeout
        self.logger = logger
        self.state = RUNNING

    def install(self, is_interactive: bool) -> None:
        """Register the SIGINT handler (and the Windows stdin relay if needed)."""
        if not is_interactive and sys.platform == "win32":
            # Without a console, Windows never delivers Ctrl+C as SIGINT;
            # watch stdin for the raw ^C byte and raise it ourselves
            relay = threading.Thread(target=self._relay_stdin_interrupts, daemon=True)
            relay.start()

        signal.signal(signal.SIGINT, self.handle_interrupt)

    def _relay_stdin_interrupts(self) -> None:
        while True:
            ch = sys.stdin.read(1)
            if not ch:
                return
            if ch == "\x03":
                signal.raise_signal(signal.SIGINT)

    def handle_interrupt(self, signum=None, frame=None) -> None:
        # A second Ctrl+C while shutting down is ignored
        if self.state == STOPPING:
            return
        self.state = STOPPING

        self.terminal.with_timestamp("Stopping packager...")
        if self.logger is not None:
            self.logger.info("packagerctl", "Interrupt received, stopping packager")

        clean_up_packager(self.packager, self.project_dir, self.timeout, self.logger)

        self.terminal.with_timestamp(self.terminal.green("Packager stopped."))
        sys.exit(0)
