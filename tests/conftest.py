from __future__ import annotations

import io
import time
from typing import Optional

import pytest

from packagerctl.packager.base import Packager
from packagerctl.packager.model import ProcessInfo
from packagerctl.supervisor.session import SessionState
from packagerctl.utils.log import Terminal


class FakePackager(Packager):
    """
    Scripted stand-in for the real packager.

    Each process_events() call plays one step of the script:
        ("server", [LogEvent, ...])   a batch on the server stream
        ("device", LogEvent)          one event on the raw stream
        ("start", None)               bundle build started
        ("progress", percent)         bundle build progressed
        ("finish", (err, start, end)) bundle build finished
    """

    def __init__(self, script=(), start_error: Optional[Exception] = None,
                 pid: Optional[int] = None, stop_hangs: bool = False):
        self.script = list(script)
        self.start_error = start_error
        self.pid = pid
        self.stop_hangs = stop_hangs
        self.started_with = None
        self.stop_calls = 0
        self.watchers = []
        self.writers = []

    def start(self, project_dir, options):
        if self.start_error is not None:
            raise self.start_error
        self.started_with = (project_dir, options)

    def stop(self, project_dir):
        self.stop_calls += 1
        if self.stop_hangs:
            time.sleep(2)

    def read_process_info(self, project_dir):
        return ProcessInfo(packager_pid=self.pid)

    def watch_server_logs(self, project_dir, on_start_build_bundle, on_progress_build_bundle,
                          on_finish_build_bundle, update_logs):
        self.watchers.append((on_start_build_bundle, on_progress_build_bundle,
                              on_finish_build_bundle, update_logs))

    def attach_logger_stream(self, project_dir, write):
        self.writers.append(write)

    def process_events(self, timeout):
        if not self.script:
            return False

        kind, payload = self.script.pop(0)
        for on_start, on_progress, on_finish, update_logs in self.watchers:
            if kind == "server":
                update_logs(lambda existing, chunks=payload: existing + chunks)
            elif kind == "start":
                on_start()
            elif kind == "progress":
                on_progress(payload)
            elif kind == "finish":
                on_finish(*payload)

        if kind in ("server", "device"):
            events = payload if kind == "server" else [payload]
            for write in self.writers:
                for event in events:
                    write(event)

        return True

    @property
    def returncode(self):
        return 0


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def terminal(output) -> Terminal:
    return Terminal(output, color=False)


@pytest.fixture
def state() -> SessionState:
    return SessionState()


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    monkeypatch.setenv("PACKAGERCTL_LOG_ROOT", str(tmp_path / "logs"))
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("FORCE_COLOR", raising=False)


@pytest.fixture
def make_packager():
    return FakePackager
