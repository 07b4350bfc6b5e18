"""
On-disk project settings for the packager.

When the packager starts, its pid and port are recorded in
<project>/.packagerctl/packager-info.json. The file outlives packagerctl
itself, which is the point: if a graceful stop hangs, or packagerctl was
killed, the recorded pid is still there to terminate the packager by hand
(`packagerctl stop`).
"""

from __future__ import annotations

import datetime
import json
from dataclasses import asdict
from pathlib import Path

from ..utils.paths import packager_info_path
from .model import ProcessInfo


def read_packager_info(project: Path) -> ProcessInfo:
    """
    Read the recorded packager info for a project.

    Returns:
        ProcessInfo: Empty (all fields None) when nothing is recorded.

    Raises:
        json.JSONDecodeError: If the settings file is corrupt.
    """
    path = packager_info_path(project)
    if not path.exists():
        return ProcessInfo()

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    return ProcessInfo(
        packager_pid=data.get("packagerPid"),
        packager_port=data.get("packagerPort"),
        started_at=data.get("startedAt"),
    )


def write_packager_info(project: Path, pid: int, port: int) -> ProcessInfo:
    """Record a freshly started packager and return what was written."""
    info = ProcessInfo(
        packager_pid=pid,
        packager_port=port,
        started_at=(
            datetime.datetime.now(datetime.timezone.utc)
            .isoformat(timespec="seconds")
            .replace("+00:00", "Z")
        ),
    )

    path = packager_info_path(project)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = asdict(info)
    with path.open("w", encoding="utf-8") as f:
        json.dump(
            {
                "packagerPid": data["packager_pid"],
                "packagerPort": data["packager_port"],
                "startedAt": data["started_at"],
            },
            f,
            indent=2,
        )

    return info


def clear_packager_info(project: Path) -> None:
    """Forget the recorded packager, if any."""
    path = packager_info_path(project)
    if path.exists():
        path.unlink()
