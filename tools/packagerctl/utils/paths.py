"""
Filesystem path definitions for packagerctl.

This module defines the canonical locations packagerctl reads and writes
inside a mobile project. All path logic is centralized here to avoid
duplication and keep the CLI, the concrete packager and the session log
in agreement about where things live.

Layout (relative to the project directory):
    .packagerctl/
        packager-info.json   recorded packager pid/port (project settings)
        logs/
            packager.log     append-only session log

Design Decisions:
    - All functions return pathlib.Path objects for cross-platform compatibility
    - Paths are resolved relative to the project directory passed in, never
      relative to this file, because the tool runs against arbitrary projects
    - PACKAGERCTL_LOG_ROOT overrides the log directory when set
"""

import os
from pathlib import Path
from typing import Optional, Union

# Name of the per-project directory holding packagerctl state
SETTINGS_DIR_NAME = ".packagerctl"

# File holding the recorded packager process info
PACKAGER_INFO_FILE = "packager-info.json"


def project_dir(path: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve the project directory the packager runs against.

    Args:
        path: Explicit project directory. Defaults to the current working
              directory, which is what the packager itself assumes.

    Returns:
        Path: Absolute path to the project directory.

    Example:
        >>> project_dir("~/Code/MyApp")
        PosixPath('/home/user/Code/MyApp')
    """
    if path is None:
        return Path.cwd().resolve()
    return Path(path).expanduser().resolve()


def settings_dir(project: Path) -> Path:
    """
    Return the packagerctl settings directory for a project.

    Args:
        project: The project directory.

    Returns:
        Path: <project>/.packagerctl
    """
    return project / SETTINGS_DIR_NAME


def packager_info_path(project: Path) -> Path:
    """
    Return the path of the recorded packager process info.

    This file is written when the packager starts and removed when it is
    stopped. The lifecycle supervisor reads it to find a pid to kill when
    a graceful stop does not finish in time.
    """
    return settings_dir(project) / PACKAGER_INFO_FILE


def log_root(project: Path) -> Path:
    """
    Return the root directory for packagerctl session logs.

    Uses the PACKAGERCTL_LOG_ROOT environment variable if set, otherwise
    falls back to the project's .packagerctl/logs directory.

    Example:
        >>> os.environ["PACKAGERCTL_LOG_ROOT"] = "/var/log/packagerctl"
        >>> log_root(Path("/tmp/app"))
        PosixPath('/var/log/packagerctl')
    """
    root = os.environ.get("PACKAGERCTL_LOG_ROOT")
    if root:
        return Path(root).expanduser()
    return settings_dir(project) / "logs"


def session_log_path(project: Path) -> Path:
    """Return the session log file for a project."""
    return log_root(project) / "packager.log"


def schema_path() -> Path:
    """
    Return the bundled fake-data GraphQL schema descriptor.

    The file ships inside the package (schema/schema.faker.graphql) so it
    can be located without knowing where packagerctl was installed.
    """
    return Path(__file__).resolve().parents[1] / "schema" / "schema.faker.graphql"
