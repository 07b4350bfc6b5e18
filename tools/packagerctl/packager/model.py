"""
Data models shared by the packager layer and the supervisor.

Log events from the server stream and the device stream need a common
representation so a single dispatch function can handle both. This
module defines that structure, plus the small records describing how the
packager is started and where it is running.

Severity levels follow the bunyan numeric scale the packager's own
logger uses, so a level from a JSON record can be compared directly.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

# bunyan severity scale
TRACE = 10
DEBUG = 20
INFO = 30
WARN = 40
ERROR = 50
FATAL = 60

LEVEL_NAMES = {
    TRACE: "TRACE",
    DEBUG: "DEBUG",
    INFO: "INFO",
    WARN: "WARN",
    ERROR: "ERROR",
    FATAL: "FATAL",
}

# Textual level names accepted in records, mapped back to the numeric scale
LEVELS_BY_NAME = {
    "trace": TRACE,
    "debug": DEBUG,
    "log": INFO,
    "info": INFO,
    "warn": WARN,
    "warning": WARN,
    "error": ERROR,
    "fatal": FATAL,
}

# Tag marking events that originate on a device rather than in the server
DEVICE_TAG = "device"


def level_name(level: int) -> str:
    """Return the closest textual name for a numeric level (rounded down)."""
    for threshold in sorted(LEVEL_NAMES, reverse=True):
        if level >= threshold:
            return LEVEL_NAMES[threshold]
    return LEVEL_NAMES[TRACE]


@dataclass
class LogEvent:
    """
    A single log event from the packager.

    Attributes:
        message: The human-readable log message (bunyan "msg").
        level: Severity on the bunyan scale (INFO, WARN, ERROR, ...).
        device_name: Device that emitted the message, for device events.
        tag: Origin tag; "device" for device events, None or a server tag otherwise.
        raw: The original parsed record, kept for debugging.
        seq: Arrival order within the packager session.
    """
    message: str
    level: int = INFO
    device_name: Optional[str] = None
    tag: Optional[str] = None
    raw: Any = None
    seq: int = 0


@dataclass
class BuildEvent:
    """
    A bundle build lifecycle event.

    Attributes:
        kind: "start", "progress" or "finish".
        percent: Progress percentage (0-100) for "progress" events.
        error: Failure reason for a "finish" event of a failed build.
        start_time: Build start in milliseconds, for "finish" events.
        end_time: Build end in milliseconds, for "finish" events.
    """
    kind: str
    percent: float = 0
    error: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None


@dataclass
class ProcessInfo:
    """
    What is recorded on disk about a running packager.

    Attributes:
        packager_pid: Operating system process id of the packager.
        packager_port: TCP port the packager serves bundles on.
        started_at: ISO 8601 UTC timestamp of when it was started.
    """
    packager_pid: Optional[int] = None
    packager_port: Optional[int] = None
    started_at: Optional[str] = None


@dataclass
class StartOptions:
    """
    Options passed through to the packager on start.

    Attributes:
        port: Port the packager should listen on.
        reset_cache: Ask the packager to drop its transform cache.
        dev: Development mode (sets __DEV__ in served bundles).
        extra_args: Additional arguments appended verbatim to the command.
    """
    port: int = 8081
    reset_cache: bool = False
    dev: bool = True
    extra_args: List[str] = field(default_factory=list)
