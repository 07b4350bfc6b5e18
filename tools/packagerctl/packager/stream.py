"""
Parsing of the packager's output stream.

The packager writes one record per line on stdout. Three shapes show up
in practice and all of them are turned into LogEvent / BuildEvent
objects here:

    - bunyan records:    {"msg": "...", "level": 30, "tag": "device", "deviceName": "Pixel 7"}
    - reporter events:   {"type": "bundle_transform_progressed", "transformedFileCount": 10, ...}
    - plain text lines:  "warn Package foo has been ignored"

Design Decisions:
    - Unknown JSON shapes are passed through as INFO log lines rather than
      dropped, so nothing the packager says is lost
    - Build timing is measured here (the reporter events carry no
      timestamps), in milliseconds since the epoch
    - The parser is pure apart from its clock and sequence counter, so it
      can be fed lines directly in tests
"""

import json
import re
import time
from typing import Any, Callable, Dict, List, Optional, Union

from .model import (
    DEBUG,
    DEVICE_TAG,
    ERROR,
    INFO,
    LEVELS_BY_NAME,
    WARN,
    BuildEvent,
    LogEvent,
)

# Message the packager prints once its dependency graph is ready
DEPENDENCY_GRAPH_LOADED = "Dependency graph loaded."

Event = Union[LogEvent, BuildEvent]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _error_text(error: Any) -> str:
    """Render an error payload (string, or object with message/stack) as text."""
    if isinstance(error, dict):
        return error.get("stack") or error.get("message") or json.dumps(error)
    return str(error)


def _level(value: Any, default: int = INFO) -> int:
    """Normalize a numeric or textual level to the bunyan scale."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        return LEVELS_BY_NAME.get(value.lower(), default)
    return default


class PackagerOutputParser:
    """
    Turn packager stdout lines into log and build events.

    Attributes:
        seq: Sequence counter, incremented for every emitted LogEvent.
        build_started_at: Build start times in ms, keyed by build id.

    Example:
        >>> parser = PackagerOutputParser()
        >>> parser.parse_line('{"type": "dep_graph_loaded"}')
        [LogEvent(message='Dependency graph loaded.', level=30, ...)]
    """

    # Plain text lines optionally start with a level word
    PLAIN_LINE_PATTERN = re.compile(
        r"^(?P<level>error|warn(?:ing)?|info|debug)\b[:\s]+(?P<msg>.*)$",
        re.IGNORECASE,
    )

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self.seq = 0
        self.build_started_at: Dict[str, int] = {}
        self._clock = clock

    def _log(self, message: str, level: int = INFO, tag: Optional[str] = None,
             device_name: Optional[str] = None, raw: Any = None) -> LogEvent:
        self.seq += 1
        return LogEvent(
            message=message,
            level=level,
            device_name=device_name,
            tag=tag,
            raw=raw,
            seq=self.seq,
        )

    def parse_line(self, line: str) -> List[Event]:
        """
        Parse one line of packager output.

        Returns:
            List of events; empty for blank lines.
        """
        line = line.rstrip("\r\n")
        if not line.strip():
            return []

        stripped = line.lstrip()
        if stripped.startswith("{"):
            try:
                record = json.loads(stripped)
            except json.JSONDecodeError:
                record = None
            if isinstance(record, dict):
                return self._parse_record(record)

        return [self._parse_plain(line)]

    def _parse_plain(self, line: str) -> LogEvent:
        # The level word only picks the level; the message keeps the whole line
        match = self.PLAIN_LINE_PATTERN.match(line)
        level = _level(match.group("level")) if match else INFO
        return self._log(line, level=level, raw={"line": line})

    def _parse_record(self, record: Dict[str, Any]) -> List[Event]:
        if "type" in record and "msg" not in record:
            return self._parse_reporter_event(record)

        # bunyan layout
        message = record.get("msg")
        if message is None:
            message = json.dumps(record)
        return [self._log(
            str(message),
            level=_level(record.get("level")),
            tag=record.get("tag"),
            device_name=record.get("deviceName"),
            raw=record,
        )]

    def _parse_reporter_event(self, record: Dict[str, Any]) -> List[Event]:
        kind = record["type"]
        build_id = str(record.get("buildID", ""))

        if kind == "dep_graph_loaded":
            return [self._log(DEPENDENCY_GRAPH_LOADED, raw=record)]

        if kind == "dep_graph_loading":
            return [self._log("Loading dependency graph...", level=DEBUG, raw=record)]

        if kind == "bundle_build_started":
            self.build_started_at[build_id] = self._clock()
            return [BuildEvent("start")]

        if kind == "bundle_transform_progressed":
            total = record.get("totalFileCount") or 0
            done = record.get("transformedFileCount") or 0
            if total <= 0:
                return []
            return [BuildEvent("progress", percent=int(100 * done / total))]

        if kind in ("bundle_build_done", "bundle_build_failed"):
            end_time = self._clock()
            start_time = self.build_started_at.pop(build_id, end_time)
            error = None
            if kind == "bundle_build_failed":
                error = _error_text(record.get("error", "Bundle build failed"))
            return [BuildEvent("finish", error=error, start_time=start_time, end_time=end_time)]

        if kind == "client_log":
            data = record.get("data") or []
            parts = [item if isinstance(item, str) else json.dumps(item) for item in data]
            return [self._log(
                " ".join(parts),
                level=_level(record.get("level")),
                tag=DEVICE_TAG,
                device_name=record.get("deviceName") or "device",
                raw=record,
            )]

        if kind in ("bundling_error", "hmr_client_error", "initialize_failed"):
            return [self._log(_error_text(record.get("error", kind)), level=ERROR, raw=record)]

        if kind == "global_cache_error":
            return [self._log(_error_text(record.get("error", kind)), level=WARN, raw=record)]

        if kind in ("worker_stdout_chunk", "worker_stderr_chunk"):
            chunk = str(record.get("chunk", "")).rstrip()
            if not chunk:
                return []
            level = ERROR if kind == "worker_stderr_chunk" else INFO
            return [self._log(chunk, level=level, raw=record)]

        # Anything else (initialize_started, transform_cache_reset, ...) is
        # kept as a debug line so it still reaches the session log
        return [self._log(kind, level=DEBUG, raw=record)]
