"""
Packager control surface for packagerctl.

The mobile packager (Metro / the React Native bundler server) is an
external process. The supervisor never talks to it directly; it goes
through the Packager interface defined here, which any concrete
implementation (the real subprocess wrapper, or a test double) satisfies.

Modules:
    - model: LogEvent, severity levels, ProcessInfo, StartOptions
    - base: the abstract Packager interface
    - stream: parsing of the packager's stdout into log and build events
    - process: SubprocessPackager, the real implementation
    - settings: the on-disk record of the running packager's pid
"""

from .base import Packager, PackagerError, PackagerNotRunningError, PackagerStartError
from .model import LogEvent, ProcessInfo, StartOptions

__all__ = [
    "LogEvent",
    "Packager",
    "PackagerError",
    "PackagerNotRunningError",
    "PackagerStartError",
    "ProcessInfo",
    "StartOptions",
]
