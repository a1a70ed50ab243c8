# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Command-line interface for project closure resolution.

Usage:
    project-closure resolve src/App/App.csproj
    project-closure resolve src/App/App.csproj --json
    project-closure plan src/App/App.csproj --unloaded src/Lib/Lib.csproj

Exit codes:
    0: Success
    1: A project file or reference could not be read/resolved
    2: A resolution bound was exceeded
    130: Interrupted
"""

import argparse
import json
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

from project_closure.config import Config
from project_closure.host import InMemorySolutionHost
from project_closure.logging_setup import setup_logging
from project_closure.paths import UnresolvedReferencePath
from project_closure.project_reader import ProjectReadError
from project_closure.reloader import ProjectReloader
from project_closure.resolver import ClosureResolver, ResolutionCancelled, ResolutionTimeout

EXIT_OK = 0
EXIT_READ_ERROR = 1
EXIT_LIMIT_EXCEEDED = 2
EXIT_INTERRUPTED = 130


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="project-closure",
        description="Resolve the transitive project references of a project file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    project-closure resolve App/App.csproj
    project-closure plan App/App.csproj --unloaded Lib1/Lib1.csproj Shared/Shared.csproj
        """,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file. Default: ./.project_closure.yml",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write JSON logs to this directory (disabled by default)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured log level",
    )
    output_options = argparse.ArgumentParser(add_help=False)
    output_options.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON instead of one path per line",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve", parents=[output_options], help="Print the closure of a project"
    )
    resolve_parser.add_argument("root", type=Path, help="Root project file")

    plan_parser = subparsers.add_parser(
        "plan",
        parents=[output_options],
        help="Show which unloaded projects a reload would bring back",
    )
    plan_parser.add_argument("root", type=Path, help="Root project file")
    plan_parser.add_argument(
        "--unloaded",
        type=Path,
        nargs="*",
        default=[],
        help="Project files currently unloaded in the solution",
    )

    return parser.parse_args(argv)


def _print_lines(lines: List[str]) -> None:
    for line in lines:
        print(line)


def run(
    args: argparse.Namespace,
    config: Optional[Config] = None,
    cancel_event: Optional[threading.Event] = None,
) -> int:
    """Execute a parsed command.

    Returns:
        Process exit code.
    """
    if config is None:
        config = Config(config_path=args.config)
    resolver = ClosureResolver(config=config)

    try:
        if args.command == "resolve":
            closure = resolver.resolve(args.root, cancel_event=cancel_event)
            if args.json:
                print(json.dumps(closure.to_dict(), indent=2))
            else:
                _print_lines(closure.paths())
            return EXIT_OK

        host = InMemorySolutionHost()
        for path in args.unloaded:
            host.add_project(str(path), loaded=False)
        report = ProjectReloader(host, resolver).plan_reload(args.root, cancel_event=cancel_event)
        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            _print_lines(report.reloaded)
        return EXIT_OK

    except (ProjectReadError, UnresolvedReferencePath) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_READ_ERROR
    except ResolutionTimeout as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_LIMIT_EXCEEDED
    except ResolutionCancelled as e:
        print(f"cancelled: {e}", file=sys.stderr)
        return EXIT_INTERRUPTED


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the project-closure command.

    Returns:
        Exit code.
    """
    args = parse_args(argv)

    config = Config(config_path=args.config)
    level_name = args.log_level or config.log_level
    setup_logging(
        log_dir=args.log_dir,
        log_level=getattr(logging, level_name),
        console_output=True,
        file_output=args.log_dir is not None,
    )

    try:
        return run(args, config)
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
