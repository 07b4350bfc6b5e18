from __future__ import annotations

import io
import re

from packagerctl.utils.log import Terminal, supports_color
from packagerctl.utils.sessionlog import SessionLogger


class _Tty(io.StringIO):
    def isatty(self):
        return True


def test_with_timestamp_prefixes_clock(terminal, output):
    terminal.with_timestamp("Starting packager...")

    assert re.fullmatch(r"\[\d\d:\d\d:\d\d\] Starting packager\.\.\.\n", output.getvalue())


def test_colors_follow_tty_and_no_color(monkeypatch):
    assert supports_color(_Tty()) is True
    assert supports_color(io.StringIO()) is False

    monkeypatch.setenv("NO_COLOR", "1")
    assert supports_color(_Tty()) is False


def test_paint_is_noop_without_color(terminal):
    assert terminal.red("x") == "x"
    assert Terminal(io.StringIO(), color=True).red("x") == "\x1b[31mx\x1b[0m"


def test_session_logger_line_format(tmp_path):
    logger = SessionLogger(tmp_path / "MyApp")

    logger.warn("server", "first line\nsecond line\n")

    line = logger.path.read_text(encoding="utf-8")
    assert re.fullmatch(
        r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\dZ \[project=MyApp\] \[source=server\] "
        r"WARN first line\\nsecond line\n",
        line,
    )


def test_session_logger_rotate_keeps_one_previous_session(tmp_path):
    logger = SessionLogger(tmp_path / "MyApp")
    logger.info("packagerctl", "first session")
    logger.rotate()
    logger.info("packagerctl", "second session")
    logger.rotate()
    logger.info("packagerctl", "third session")

    previous = logger.path.with_name("packager.log.1")
    assert "third session" in logger.path.read_text(encoding="utf-8")
    assert "second session" in previous.read_text(encoding="utf-8")
    assert sorted(p.name for p in logger.path.parent.iterdir()) == ["packager.log", "packager.log.1"]


def test_rotate_without_existing_log(tmp_path):
    logger = SessionLogger(tmp_path / "MyApp")

    logger.rotate()

    assert not logger.path.exists()
