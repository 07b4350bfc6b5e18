"""
Packager supervisor entry point.

run() is what `packagerctl start` calls. It wires a Packager to the log
dispatcher, the build progress tracker and the exit hooks, starts the
packager, and then pumps events on the calling thread until the packager
exits (or Ctrl+C ends the process from the SIGINT handler).
"""

import sys
import traceback
from pathlib import Path
from typing import Callable, Optional, Union

from ..packager.base import Packager
from ..packager.model import DEVICE_TAG, LogEvent, StartOptions, level_name
from ..packager.process import SubprocessPackager
from ..utils import log
from ..utils.log import Terminal
from ..utils.paths import project_dir as resolve_project_dir
from ..utils.sessionlog import SessionLogger
from . import progress
from .dispatch import handle_log_chunk
from .lifecycle import STOP_TIMEOUT, ExitHooks
from .preflight import check_file_watch_limits
from .session import SessionState

# Seconds to wait for packager output per loop iteration
POLL_INTERVAL = 0.25


def run(
    on_ready: Optional[Callable[[], None]] = None,
    options: Optional[StartOptions] = None,
    is_interactive: bool = False,
    packager: Optional[Packager] = None,
    project_dir: Optional[Union[str, Path]] = None,
    terminal: Optional[Terminal] = None,
    stop_timeout: float = STOP_TIMEOUT,
) -> int:
    """
    Start the packager for a project and supervise it until it exits.

    Args:
        on_ready: Called every time the packager reports its dependency
            graph loaded.
        options: Options passed through to the packager.
        is_interactive: Whether packagerctl runs attached to a console.
        packager: Packager implementation; a SubprocessPackager by default.
        project_dir: Project to serve; the current directory by default.
        terminal: Output target; the shared terminal by default.
        stop_timeout: Seconds a graceful stop may take on Ctrl+C.

    Returns:
        int: The packager's exit status.

    Exit Codes:
        Exits the process with 1 if preflight checks fail or the packager
        cannot be started.
    """
    terminal = terminal or log.terminal
    options = options or StartOptions()
    packager = packager or SubprocessPackager()
    project = resolve_project_dir(project_dir)
    state = SessionState()

    check_file_watch_limits(terminal)

    logger = SessionLogger(project)
    logger.rotate()
    logger.info("packagerctl", f"Session started for {project}")

    def handle_chunk(chunk: LogEvent) -> None:
        source = "device" if chunk.tag == DEVICE_TAG else "server"
        logger.log(source, level_name(chunk.level), chunk.message)
        handle_log_chunk(state, chunk, on_ready, terminal)

    # Subscribe to packager/server logs
    packager.watch_server_logs(
        project,
        on_start_build_bundle=lambda: progress.on_start_build_bundle(state, terminal),
        on_progress_build_bundle=lambda percent: progress.on_progress_build_bundle(state, percent),
        on_finish_build_bundle=lambda err, start_time, end_time: progress.on_finish_build_bundle(
            state, err, start_time, end_time, terminal
        ),
        update_logs=lambda updater: progress.update_logs(state, updater, handle_chunk, terminal),
    )

    # Subscribe to device updates separately from packager/server updates
    def write_device_chunk(chunk: LogEvent) -> None:
        if chunk.tag == DEVICE_TAG:
            handle_chunk(chunk)

    packager.attach_logger_stream(project, write_device_chunk)

    ExitHooks(packager, project, terminal, timeout=stop_timeout, logger=logger).install(is_interactive)
    terminal.with_timestamp("Starting packager...")

    try:
        packager.start(project, options)
    except Exception:
        logger.error("packagerctl", f"Error starting packager: {traceback.format_exc()}")
        terminal.with_timestamp(terminal.red(f"Error starting packager: {traceback.format_exc()}"))
        sys.exit(1)

    while packager.process_events(POLL_INTERVAL):
        pass

    code = packager.returncode or 0
    logger.info("packagerctl", f"Packager exited with code {code}")
    if code:
        terminal.with_timestamp(terminal.red(f"Packager exited with code {code}"))
    else:
        terminal.with_timestamp("Packager exited.")
    return code
