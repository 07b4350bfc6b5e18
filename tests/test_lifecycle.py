from __future__ import annotations

import io
import signal
import threading

import pytest

from packagerctl.packager.process import SubprocessPackager
from packagerctl.packager.settings import write_packager_info
from packagerctl.supervisor import lifecycle
from packagerctl.supervisor.lifecycle import (
    RUNNING,
    STOPPING,
    ExitHooks,
    clean_up_packager,
    stop_with_deadline,
)
from packagerctl.utils.paths import packager_info_path


@pytest.fixture
def kills(monkeypatch):
    calls = []
    monkeypatch.setattr(lifecycle.os, "kill", lambda pid, sig: calls.append((pid, sig)))
    return calls


def test_fast_stop_wins_the_race():
    assert stop_with_deadline(lambda: None, timeout=1.0) is True


def test_slow_stop_is_abandoned():
    release = threading.Event()

    assert stop_with_deadline(lambda: release.wait(5), timeout=0.05) is False
    release.set()


def test_failing_stop_loses_the_race():
    def stop():
        raise RuntimeError("stop failed")

    assert stop_with_deadline(stop, timeout=1.0) is False


def test_graceful_stop_does_not_kill(make_packager, tmp_path, kills):
    packager = make_packager(pid=4242)

    clean_up_packager(packager, tmp_path, timeout=1.0)

    assert packager.stop_calls == 1
    assert kills == []


def test_hung_stop_kills_recorded_pid(make_packager, tmp_path, kills):
    packager = make_packager(pid=4242, stop_hangs=True)

    clean_up_packager(packager, tmp_path, timeout=0.05)

    assert kills == [(4242, signal.SIGTERM)]


def test_hung_stop_without_pid_exits_1(make_packager, tmp_path, kills):
    packager = make_packager(pid=None, stop_hangs=True)

    with pytest.raises(SystemExit) as exc:
        clean_up_packager(packager, tmp_path, timeout=0.05)

    assert exc.value.code == 1
    assert kills == []


def test_failed_kill_exits_1(make_packager, tmp_path, monkeypatch):
    def kill(pid, sig):
        raise ProcessLookupError(pid)

    monkeypatch.setattr(lifecycle.os, "kill", kill)
    packager = make_packager(pid=4242, stop_hangs=True)

    with pytest.raises(SystemExit) as exc:
        clean_up_packager(packager, tmp_path, timeout=0.05)

    assert exc.value.code == 1


def test_interrupt_stops_packager_and_exits_0(make_packager, tmp_path, terminal, output):
    packager = make_packager()
    hooks = ExitHooks(packager, tmp_path, terminal)
    assert hooks.state == RUNNING

    with pytest.raises(SystemExit) as exc:
        hooks.handle_interrupt(signal.SIGINT, None)

    assert exc.value.code == 0
    assert hooks.state == STOPPING
    assert packager.stop_calls == 1
    text = output.getvalue()
    assert text.index("Stopping packager...") < text.index("Packager stopped.")


def test_second_interrupt_is_ignored(make_packager, tmp_path, terminal, output):
    packager = make_packager()
    hooks = ExitHooks(packager, tmp_path, terminal)
    hooks.state = STOPPING

    hooks.handle_interrupt(signal.SIGINT, None)

    assert packager.stop_calls == 0
    assert output.getvalue() == ""


def test_install_registers_sigint_handler(make_packager, tmp_path, terminal, monkeypatch):
    registered = {}
    monkeypatch.setattr(lifecycle.signal, "signal",
                        lambda signum, handler: registered.setdefault(signum, handler))
    hooks = ExitHooks(make_packager(), tmp_path, terminal)

    hooks.install(is_interactive=True)

    assert registered[signal.SIGINT] == hooks.handle_interrupt


def test_forced_kill_forgets_recorded_pid(tmp_path, kills):
    write_packager_info(tmp_path, pid=4242, port=8081)

    pid = lifecycle.kill_recorded_packager(SubprocessPackager(["unused"]), tmp_path)

    assert pid == 4242
    assert kills == [(4242, signal.SIGTERM)]
    assert not packager_info_path(tmp_path).exists()


def test_stdin_relay_raises_sigint_on_ctrl_c(make_packager, tmp_path, terminal, monkeypatch):
    raised = []
    monkeypatch.setattr(lifecycle.sys, "stdin", io.StringIO("ab\x03"))
    monkeypatch.setattr(lifecycle.signal, "raise_signal", raised.append)
    hooks = ExitHooks(make_packager(), tmp_path, terminal)

    # Returns once stdin is exhausted
    hooks._relay_stdin_interrupts()

    assert raised == [signal.SIGINT]


def test_non_interactive_windows_starts_stdin_relay(make_packager, tmp_path, terminal, monkeypatch):
    started = []

    class RecordingThread:
        def __init__(self, target, daemon):
            started.append((target, daemon))

        def start(self):
            started.append("started")

    monkeypatch.setattr(lifecycle.sys, "platform", "win32")
    monkeypatch.setattr(lifecycle.threading, "Thread", RecordingThread)
    monkeypatch.setattr(lifecycle.signal, "signal", lambda signum, handler: None)
    hooks = ExitHooks(make_packager(), tmp_path, terminal)

    hooks.install(is_interactive=False)

    assert started == [(hooks._relay_stdin_interrupts, True), "started"]


def test_interactive_windows_has_no_stdin_relay(make_packager, tmp_path, terminal, monkeypatch):
    monkeypatch.setattr(lifecycle.sys, "platform", "win32")
    monkeypatch.setattr(lifecycle.threading, "Thread", _fail_if_constructed)
    monkeypatch.setattr(lifecycle.signal, "signal", lambda signum, handler: None)

    ExitHooks(make_packager(), tmp_path, terminal).install(is_interactive=True)


def _fail_if_constructed(*args, **kwargs):
    raise AssertionError("no relay thread expected")
