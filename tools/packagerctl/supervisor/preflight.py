"""
Environment checks run before the packager is started.

The packager watches every file in the project. Without watchman it
falls back to the OS file watching API, which fails in confusing ways
when the per-user watch limit is too low. Rather than let the packager
die halfway through startup, check the limit up front and print the
commands that fix it.
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from ..utils.log import Terminal

HELP_URL = "https://git.io/v5vcn"

# macOS: kern.maxfiles
MACOS_MIN_MAXFILES = 5242880
MACOS_REMEDIATION = (
    "  sudo sysctl -w kern.maxfiles=5242880\n"
    "  sudo sysctl -w kern.maxfilesperproc=524288"
)

# Linux and other unixes: fs.inotify.max_user_watches
INOTIFY_MIN_WATCHES = 12288
INOTIFY_REMEDIATION = (
    "  sudo sysctl -w fs.inotify.max_user_instances=1024\n"
    "  sudo sysctl -w fs.inotify.max_user_watches=12288"
)

INOTIFY_PROC_PATH = Path("/proc/sys/fs/inotify/max_user_watches")


def watchman_installed() -> bool:
    return shutil.which("watchman") is not None


def read_sysctl(name: str, separator: str) -> int:
    """
    Read an integer kernel setting via the sysctl command.

    macOS prints "kern.maxfiles: 12288", Linux prints
    "fs.inotify.max_user_watches = 8192"; separator picks the right split.
    """
    result = subprocess.run(["sysctl", name], capture_output=True, text=True, check=True)
    return int(result.stdout.split(separator)[1].strip())


def read_inotify_watch_limit() -> int:
    # /proc is always there on Linux, sysctl(8) is not in every container
    if INOTIFY_PROC_PATH.exists():
        return int(INOTIFY_PROC_PATH.read_text().strip())
    return read_sysctl("fs.inotify.max_user_watches", "=")


def _fail(terminal: Terminal, remediation: str) -> None:
    terminal.with_timestamp(
        f"{terminal.red('Unable to start server')}\n"
        f"See {HELP_URL} for more information, either install watchman "
        f"or run the following snippet:\n"
        f"{terminal.cyan(remediation)}"
    )
    sys.exit(1)


def check_file_watch_limits(terminal: Terminal, platform: Optional[str] = None) -> None:
    """
    Exit with status 1 if the file watch limit is too low for the packager.

    Skipped on Windows, and whenever watchman is installed since watchman
    does not depend on the limit.
    """
    platform = platform or sys.platform

    if platform == "win32" or watchman_installed():
        return

    if platform == "darwin":
        if read_sysctl("kern.maxfiles", ":") < MACOS_MIN_MAXFILES:
            _fail(terminal, MACOS_REMEDIATION)
    elif read_inotify_watch_limit() < INOTIFY_MIN_WATCHES:
        _fail(terminal, INOTIFY_REMEDIATION)
