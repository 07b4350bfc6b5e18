"""
packagerctl - Developer Control Tool for the mobile packager.

This package wraps the React Native packager (Metro) for day-to-day app
development: it starts the packager for the current project, turns its
log stream into readable terminal output with a bundle progress bar, and
makes sure Ctrl+C actually takes the packager down with it.

Package Structure:
    - cli.py: Main command-line interface and entry point
    - packager/: The packager control surface and its subprocess implementation
    - supervisor/: Log dispatch, build progress, shutdown and preflight checks
    - schema/: The fake-data GraphQL schema the example app is developed against
    - utils/: Shared utilities for paths and output

Usage:
    Run as a module: python -m packagerctl <command>

Example:
    python -m packagerctl start --reset-cache
"""

__version__ = "0.1.0"
