"""
Utility modules for packagerctl.

This subpackage contains shared utilities used across packagerctl:

Modules:
    - paths: Filesystem path resolution for project settings and logs
    - log: Terminal output helpers (timestamps, colors, progress-bar aware printing)
    - sessionlog: Append-only session log file for packager events

Purpose:
    These utilities are separated from the CLI and the supervisor to:
    - Avoid circular imports
    - Enable reuse across CLI commands and the supervisor callbacks
    - Keep path and output logic centralized and testable
"""
