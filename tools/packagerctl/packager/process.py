"""
Subprocess-backed packager.

Runs the real packager command (by default `npx react-native start`) as a
child process of packagerctl and turns its stdout into log and build
events for the supervisor.

Architecture:
    - Background thread: reads the child's stdout line by line, parses
      each line and pushes the resulting events onto a queue
    - Supervisor thread: calls process_events(), which drains the queue
      and invokes subscriber callbacks one at a time
    - Communication: thread-safe queue between producer and consumer

The reader thread never calls subscribers itself, so every callback runs
on the supervisor's thread and the session state needs no locking.
"""

import os
import shlex
import signal
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue
from typing import Callable, List, Optional

from .base import LogUpdater, Packager, PackagerNotRunningError, PackagerStartError
from .model import DEVICE_TAG, BuildEvent, LogEvent, ProcessInfo, StartOptions
from .settings import clear_packager_info, read_packager_info, write_packager_info
from .stream import PackagerOutputParser

# Command used when PACKAGERCTL_COMMAND is not set
DEFAULT_COMMAND = "npx react-native start"

# Pushed by the reader thread once the child's stdout is closed
_EOF = object()


@dataclass
class _ServerWatcher:
    on_start_build_bundle: Callable[[], None]
    on_progress_build_bundle: Callable[[float], None]
    on_finish_build_bundle: Callable[[Optional[str], Optional[int], Optional[int]], None]
    update_logs: Callable[[LogUpdater], None]


def packager_command() -> List[str]:
    """Return the packager command line, honoring PACKAGERCTL_COMMAND."""
    return shlex.split(os.environ.get("PACKAGERCTL_COMMAND", DEFAULT_COMMAND))


class SubprocessPackager(Packager):
    """
    Packager implementation that owns a child process.

    Attributes:
        command: Base command line, before start options are appended.
        parser: Parser turning stdout lines into events.
        process: The running child, or None before start().
        project_dir: Project the child was started for, or None before start().
        events: Queue of parsed events waiting to be delivered.
    """

    def __init__(self, command: Optional[List[str]] = None,
                 parser: Optional[PackagerOutputParser] = None):
        self.command = list(command) if command else packager_command()
        self.parser = parser or PackagerOutputParser()
        self.process: Optional[subprocess.Popen] = None
        self.project_dir: Optional[Path] = None
        self.events: Queue = Queue()
        self._reader: Optional[threading.Thread] = None
        self._eof = False
        self._server_watchers: List[_ServerWatcher] = []
        self._stream_writers: List[Callable[[LogEvent], None]] = []

    # --------------------------------------------------------
    # Process control
    # --------------------------------------------------------

    def build_command(self, options: StartOptions) -> List[str]:
        """Append start options to the base command line."""
        cmd = self.command + ["--port", str(options.port)]
        if options.reset_cache:
            cmd.append("--reset-cache")
        return cmd + list(options.extra_args)

    def start(self, project_dir: Path, options: StartOptions) -> None:
        if self.process is not None and self.process.poll() is None:
            raise PackagerStartError(f"Packager already running (pid {self.process.pid})")

        cmd = self.build_command(options)
        env = dict(os.environ)
        env["NODE_ENV"] = "development" if options.dev else "production"

        try:
            self.process = subprocess.Popen(
                cmd,
                cwd=str(project_dir),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                # stderr is folded into stdout so ordering between them is kept
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                env=env,
            )
        except OSError as e:
            raise PackagerStartError(f"Unable to run {shlex.join(cmd)}: {e}") from e

        self.project_dir = project_dir
        write_packager_info(project_dir, self.process.pid, options.port)

        self._eof = False
        self._reader = threading.Thread(
            target=self._read_output,
            args=(self.process.stdout,),
            daemon=True,
        )
        self._reader.start()

    def _read_output(self, stdout) -> None:
        """Background thread: parse stdout lines and queue the events."""
        try:
            for line in stdout:
                for event in self.parser.parse_line(line):
                    self.events.put(event)
        finally:
            self.events.put(_EOF)

    def stop(self, project_dir: Path) -> None:
        """
        Stop the packager.

        If this instance started the packager, the child is terminated and
        waited for (which can block if it ignores SIGTERM). Otherwise the
        recorded pid is signalled, which is how `packagerctl stop` reaches
        a packager started by another packagerctl process.

        Raises:
            PackagerNotRunningError: Nothing is running or recorded.
        """
        process = self.process

        if process is None:
            info = self.read_process_info(project_dir)
            if info.packager_pid is None:
                raise PackagerNotRunningError(f"No packager recorded for {project_dir}")
            try:
                os.kill(info.packager_pid, signal.SIGTERM)
            except ProcessLookupError:
                # Recorded process is already gone; just forget it
                pass
        elif process.poll() is None:
            process.terminate()
            process.wait()

        clear_packager_info(project_dir)

    def _forget_exited_process(self) -> None:
        """
        Remove the pid record once our child has exited on its own.

        The record is only removed while it still names our child, so a
        packager started later by another packagerctl keeps its entry.
        """
        if self.project_dir is None:
            return
        info = self.read_process_info(self.project_dir)
        if info.packager_pid == self.process.pid:
            clear_packager_info(self.project_dir)

    def read_process_info(self, project_dir: Path) -> ProcessInfo:
        return read_packager_info(project_dir)

    @property
    def returncode(self) -> Optional[int]:
        if self.process is None:
            return None
        return self.process.returncode

    # --------------------------------------------------------
    # Subscriptions
    # --------------------------------------------------------

    def watch_server_logs(self, project_dir, on_start_build_bundle, on_progress_build_bundle,
                          on_finish_build_bundle, update_logs) -> None:
        self._server_watchers.append(_ServerWatcher(
            on_start_build_bundle=on_start_build_bundle,
            on_progress_build_bundle=on_progress_build_bundle,
            on_finish_build_bundle=on_finish_build_bundle,
            update_logs=update_logs,
        ))

    def attach_logger_stream(self, project_dir, write) -> None:
        self._stream_writers.append(write)

    # --------------------------------------------------------
    # Event delivery
    # --------------------------------------------------------

    def _drain(self, timeout: float) -> list:
        pending = []
        try:
            pending.append(self.events.get(timeout=timeout))
            while True:
                pending.append(self.events.get_nowait())
        except Empty:
            pass
        return pending

    def _flush_server_batch(self, batch: List[LogEvent]) -> None:
        if not batch:
            return
        chunks = list(batch)
        for watcher in self._server_watchers:
            watcher.update_logs(lambda existing, chunks=chunks: existing + chunks)
        batch.clear()

    def _deliver_build_event(self, event: BuildEvent) -> None:
        for watcher in self._server_watchers:
            if event.kind == "start":
                watcher.on_start_build_bundle()
            elif event.kind == "progress":
                watcher.on_progress_build_bundle(event.percent)
            elif event.kind == "finish":
                watcher.on_finish_build_bundle(event.error, event.start_time, event.end_time)

    def process_events(self, timeout: float) -> bool:
        batch: List[LogEvent] = []

        for event in self._drain(timeout):
            if event is _EOF:
                self._eof = True
                continue

            if isinstance(event, BuildEvent):
                # Keep log lines that arrived before the build event ahead of it
                self._flush_server_batch(batch)
                self._deliver_build_event(event)
                continue

            for write in self._stream_writers:
                write(event)
            if event.tag != DEVICE_TAG:
                batch.append(event)

        self._flush_server_batch(batch)

        if self._eof and self.process is not None:
            self.process.wait()
            self._forget_exited_process()
            return False
        return self.process is not None
