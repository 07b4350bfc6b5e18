#!/usr/bin/env python3
"""
packagerctl - Developer Control Tool for the mobile packager.

This module implements the command-line interface for packagerctl,
providing commands to run the packager under supervision, stop a
packager left running, and inspect the fake-data schema the example app
is developed against.

Responsibilities:
    - Run the packager with reformatted logs and a bundle progress bar (start)
    - Stop a packager recorded in the project settings (stop)
    - Summarize and check the fake-data schema descriptor (schema)

Usage:
    python -m packagerctl <command> [options]

Examples:
    python -m packagerctl start --port 8081
    python -m packagerctl start --reset-cache -- --max-workers 2
    python -m packagerctl stop --project ~/Code/MyApp
    python -m packagerctl schema --types
"""

# Standard library imports
import os
import argparse
import sys

from pathlib import Path

# Local imports
from .packager.base import PackagerNotRunningError
from .packager.model import StartOptions
from .packager.process import SubprocessPackager
from .schema.reader import describe_schema, load_schema, unknown_type_references
from .supervisor.lifecycle import STOP_TIMEOUT
from .supervisor.runner import run
from .utils import log
from .utils.paths import project_dir, schema_path

DEFAULT_PORT = 8081

# ============================================================
# Environment Configuration
# ============================================================

def load_dotenv(directory: Path = None) -> None:
    """
    Load a .env file from the working directory into os.environ if present.

    Lets a project pin PACKAGERCTL_COMMAND, PACKAGERCTL_PORT and friends
    without exporting them in every shell.

    Side Effects:
        Modifies os.environ by adding any variables from .env that
        aren't already set (uses setdefault, so existing vars win).
    """
    env_path = (directory or Path.cwd()) / ".env"

    # Silently skip if no .env file exists - it's optional
    if not env_path.exists():
        return

    with env_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue
            # Skip malformed lines (no = sign)
            if "=" not in line:
                continue
            # Split on first = only (value might contain =)
            key, value = line.split("=", 1)
            # setdefault ensures existing env vars take priority
            os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))


def stdin_is_tty() -> bool:
    isatty = getattr(sys.stdin, "isatty", None)
    return bool(isatty and isatty())


def env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


# ============================================================
# Commands
# ============================================================

def start_packager(args) -> int:
    """
    Run the packager under supervision until it exits.

    Inputs:
    - args.project, args.port, args.reset_cache, args.no_dev
    - args.interactive, args.stop_timeout, args.packager_args
    """
    extra_args = list(args.packager_args)
    # argparse keeps the "--" separator in front of REMAINDER arguments
    if extra_args and extra_args[0] == "--":
        extra_args = extra_args[1:]

    options = StartOptions(
        port=args.port,
        reset_cache=args.reset_cache,
        dev=not args.no_dev,
        extra_args=extra_args,
    )

    def on_ready():
        out = log.terminal
        out.with_timestamp(out.green(f"Packager ready on http://localhost:{options.port}"))

    return run(
        on_ready=on_ready,
        options=options,
        is_interactive=args.interactive,
        project_dir=args.project,
        stop_timeout=args.stop_timeout,
    )


def stop_packager(args) -> int:
    """Stop the packager recorded for a project, started by another packagerctl."""
    project = project_dir(args.project)
    try:
        SubprocessPackager().stop(project)
    except PackagerNotRunningError:
        print(f"[packagerctl] No packager running for {project}")
        return 1

    print(f"[packagerctl] Packager stopped for {project}")
    return 0


def show_schema(args) -> int:
    """
    Print the fake-data schema descriptor.

    With --types a per-field summary is printed instead of the raw file.
    With --check, exits 1 if any field refers to an undeclared type.
    """
    path = Path(args.path) if args.path else schema_path()

    if not (args.types or args.check):
        print(path.read_text(encoding="utf-8"), end="")
        return 0

    try:
        types = load_schema(path)
    except ValueError as e:
        print(f"[packagerctl] {path}: {e}", file=sys.stderr)
        return 1

    if args.types:
        for line in describe_schema(types):
            print(line)

    if args.check:
        problems = unknown_type_references(types)
        if "Query" not in types:
            problems.append("Query type is missing")
        for problem in problems:
            print(f"[packagerctl] {problem}", file=sys.stderr)
        if problems:
            return 1
        print(f"[packagerctl] {path.name}: {len(types)} types OK")

    return 0


# ============================================================
# Command-Line Argument Parsing
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    """
    Build and configure the top-level argument parser.

    Returns:
        argparse.ArgumentParser: Configured parser ready to parse sys.argv.
    """
    parser = argparse.ArgumentParser(
        prog="packagerctl",
        description="Mobile packager developer control CLI",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
    )

    # --- start: Supervised packager ---
    start_parser = subparsers.add_parser(
        "start",
        help="Start the packager and show its logs",
    )
    start_parser.add_argument("--project", default=None,
                              help="Project directory (default: current directory)")
    start_parser.add_argument("--port", type=int,
                              default=env_int("PACKAGERCTL_PORT", DEFAULT_PORT),
                              help="Port the packager listens on (default: 8081)")
    start_parser.add_argument("--reset-cache", action="store_true",
                              help="Clear the packager's transform cache")
    start_parser.add_argument("--no-dev", action="store_true",
                              help="Serve production bundles")
    start_parser.add_argument(
        "--interactive",
        action=argparse.BooleanOptionalAction,
        default=stdin_is_tty(),
        help="Whether a console is attached (default: detected)",
    )
    start_parser.add_argument(
        "--stop-timeout",
        type=float,
        default=env_float("PACKAGERCTL_STOP_TIMEOUT", STOP_TIMEOUT),
        help="Seconds to wait for a graceful stop on Ctrl+C (default: 1)",
    )
    start_parser.add_argument("packager_args", nargs=argparse.REMAINDER,
                              help="Extra arguments for the packager, after --")

    # --- stop: Stop a recorded packager ---
    stop_parser = subparsers.add_parser(
        "stop",
        help="Stop the packager recorded for a project",
    )
    stop_parser.add_argument("--project", default=None,
                             help="Project directory (default: current directory)")

    # --- schema: Fake-data schema descriptor ---
    schema_parser = subparsers.add_parser(
        "schema",
        help="Show the fake-data GraphQL schema",
    )
    schema_parser.add_argument("--path", default=None,
                               help="Schema file (default: the bundled schema)")
    schema_parser.add_argument("--types", action="store_true",
                               help="Summarize types, fields and directives")
    schema_parser.add_argument("--check", action="store_true",
                               help="Fail if a field refers to an undeclared type")

    return parser


# ============================================================
# Entry Point
# ============================================================

def main(argv=None) -> None:
    """
    Main entry point for the packagerctl CLI.

    Exit Codes:
        0: Success
        1: Preflight failure, packager start failure, or command error
    """
    # Load any .env configuration before parsing args so env defaults apply
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "start":
        sys.exit(start_packager(args))

    if args.command == "stop":
        sys.exit(stop_packager(args))

    if args.command == "schema":
        sys.exit(show_schema(args))

    # Unknown command - show help
    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
