from __future__ import annotations

from packagerctl.packager.model import INFO, LogEvent
from packagerctl.supervisor import progress
from packagerctl.supervisor.progress import ProgressBar


def _recording_ticks(bar):
    """Wrap bar.tick so every call's delta is recorded."""
    ticks = []
    original = bar.tick

    def tick(delta=1):
        ticks.append(delta)
        original(delta)

    bar.tick = tick
    return ticks


def test_start_replaces_previous_bar(state, terminal):
    first = progress.on_start_build_bundle(state, terminal)
    first.tick(30)

    second = progress.on_start_build_bundle(state, terminal)

    assert state.progress_bar is second
    assert second is not first
    assert second.curr == 0
    assert second.total == 100
    assert terminal.bundle_progress_bar is second


def test_progress_advances_by_delta(state, terminal):
    bar = progress.on_start_build_bundle(state, terminal)
    positions = []

    for percent in (20, 20, 60):
        before = bar.curr
        progress.on_progress_build_bundle(state, percent)
        positions.append(bar.curr - before)

    assert positions == [20, 0, 40]


def test_progress_only_ticks_forward(state, terminal):
    bar = progress.on_start_build_bundle(state, terminal)
    ticks = _recording_ticks(bar)

    for percent in (50, 30, 50, 10, 70):
        progress.on_progress_build_bundle(state, percent)

    assert ticks == [50, 20]
    assert bar.curr == 70


def test_progress_without_bar_is_ignored(state):
    progress.on_progress_build_bundle(state, 50)

    assert state.progress_bar is None


def test_progress_on_complete_bar_is_ignored(state, terminal):
    bar = progress.on_start_build_bundle(state, terminal)
    progress.on_progress_build_bundle(state, 100)
    assert bar.complete

    ticks = _recording_ticks(bar)
    progress.on_progress_build_bundle(state, 120)

    assert ticks == []
    assert bar.curr == 100


def test_finish_reports_duration(state, terminal, output):
    bar = progress.on_start_build_bundle(state, terminal)
    progress.on_progress_build_bundle(state, 40)

    progress.on_finish_build_bundle(state, None, 1000, 1750, terminal)

    assert bar.curr == 100
    assert bar.complete
    assert state.progress_bar is None
    assert terminal.bundle_progress_bar is None
    assert "Finished building JavaScript bundle in 750ms" in output.getvalue()


def test_finish_with_error_reports_failure_without_duration(state, terminal, output):
    progress.on_start_build_bundle(state, terminal)

    progress.on_finish_build_bundle(state, "SyntaxError", 1000, 1750, terminal)

    text = output.getvalue()
    assert "Failed building JavaScript bundle" in text
    assert "ms" not in text.split("Failed building JavaScript bundle")[1]
    assert "Finished" not in text
    assert state.progress_bar is None


def test_finish_without_bar_prints_nothing(state, terminal, output):
    progress.on_finish_build_bundle(state, None, 0, 10, terminal)

    assert output.getvalue() == ""


def test_watchman_restart_closes_bar_as_failure(state, terminal, output):
    bar = progress.on_start_build_bundle(state, terminal)
    progress.on_progress_build_bundle(state, 30)
    handled = []
    chunks = [LogEvent("Watchman crashed"), LogEvent("Restarted watchman."), LogEvent("after")]

    progress.update_logs(state, lambda existing: existing + chunks, handled.append, terminal)

    assert bar.complete
    assert state.progress_bar is None
    assert terminal.bundle_progress_bar is None
    assert "Failed building JavaScript bundle" in output.getvalue()
    assert [c.message for c in handled] == ["Watchman crashed", "Restarted watchman.", "after"]


def test_update_logs_without_bar_only_dispatches(state, terminal, output):
    handled = []
    chunks = [LogEvent("Restarted watchman.", level=INFO)]

    progress.update_logs(state, lambda existing: existing + chunks, handled.append, terminal)

    assert handled == chunks
    assert output.getvalue() == ""


def test_bar_renders_format(terminal, output):
    bar = ProgressBar("Building JavaScript bundle [:bar] :percent", total=100,
                      terminal=terminal, width=10)

    bar.tick(50)

    assert "Building JavaScript bundle [=====     ] 50%" in output.getvalue()
    assert not bar.complete


def test_bar_clamps_at_total(terminal):
    bar = ProgressBar(":bar", total=100, terminal=terminal)

    bar.tick(250)

    assert bar.curr == 100
    assert bar.complete


def test_log_lines_are_printed_above_active_bar(state, terminal, output):
    progress.on_start_build_bundle(state, terminal)
    progress.on_progress_build_bundle(state, 25)
    output.truncate(0)
    output.seek(0)

    terminal.log("hello")

    text = output.getvalue()
    assert text.index("hello\n") < text.index("25%")


def test_finish_without_timing_omits_duration(state, terminal, output):
    progress.on_start_build_bundle(state, terminal)

    progress.on_finish_build_bundle(state, None, None, None, terminal)

    text = output.getvalue()
    assert "Finished building JavaScript bundle\n" in text
    assert "ms" not in text
