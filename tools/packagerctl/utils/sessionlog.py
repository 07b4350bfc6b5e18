"""
Session logging for packager observability.

Terminal output is reformatted for humans and partly suppressed (noisy
warnings, buffered startup output). This module keeps the unfiltered
record: every event the supervisor receives is appended to a single
plain text file per project, so a developer can see what the packager
actually said after the terminal has scrolled away.

Design Decisions:
    - One log file per project, rotated at the start of every session:
      the previous session is kept as packager.log.1 and anything older is
      dropped, so at most two sessions are kept on disk
    - Append-only writes to prevent data loss
    - Same line format as the pipeline job logs:
          <timestamp> [project=<name>] [source=<source>] <LEVEL> <message>
    - UTC timestamps for consistency across machines
"""

from __future__ import annotations

import datetime
from pathlib import Path

from .paths import session_log_path


class SessionLogger:
    """
    Minimal append-only session logger.

    Attributes:
        project: The project directory the packager runs against.
        path: The filesystem path to the log file.

    Example:
        >>> logger = SessionLogger(Path("/tmp/app"))
        >>> logger.info("server", "Dependency graph loaded.")
        # Writes: 2024-01-15T12:00:00Z [project=app] [source=server] INFO Dependency graph loaded.
    """

    def __init__(self, project: Path) -> None:
        self.project = project
        self.path = session_log_path(project)
        # Ensure the log directory exists before any writes
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def rotate(self) -> None:
        """Move the current log to <name>.1, replacing the previous one."""
        if self.path.exists():
            self.path.replace(self.path.with_name(f"{self.path.name}.1"))

    def _ts(self) -> str:
        return (
            datetime.datetime.now(datetime.timezone.utc)
            .isoformat(timespec="seconds")
            # Replace the verbose +00:00 suffix with the more compact Z
            .replace("+00:00", "Z")
        )

    def log(self, source: str, level: str, message: str) -> None:
        """
        Write a structured log line to the session log file.

        Multi-line messages (stack traces, buffered startup output) are
        folded onto one line so the file stays one record per line.

        Args:
            source: Where the message came from ("server", "device", "packagerctl").
            level: The log severity level (e.g., "INFO", "WARN", "ERROR").
            message: The message to log.
        """
        text = message.rstrip("\n").replace("\n", "\\n")
        line = (
            f"{self._ts()} "
            f"[project={self.project.name}] "
            f"[source={source}] "
            f"{level.upper()} {text}\n"
        )
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line)

    def info(self, source: str, message: str) -> None:
        self.log(source, "INFO", message)

    def warn(self, source: str, message: str) -> None:
        self.log(source, "WARN", message)

    def error(self, source: str, message: str) -> None:
        self.log(source, "ERROR", message)
