#!/usr/bin/env python3
"""
igotifier Command-Line Interface.

Watches a file or directory and runs a command whenever it changes.
Requires Python 3.11+.

Usage:
    igotifier -path=<path> -exec=<command> [-verbose]
"""

import argparse
import sys

from pydantic import ValidationError

from watcher.event_loop import EventLoop
from watcher.exceptions import WatcherError
from utils.config import APP_NAME, APP_VERSION, DispatchConfig
from utils.logger import configure_logging, get_logger

EXAMPLES = f"""\
Examples:
  {APP_NAME} -path="/config/app.yaml" -exec="app-reloader sighup --name=nginx"
  {APP_NAME} -path="./src" -exec="make test" -verbose
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; long options take a single dash."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=f"{APP_NAME} - File watcher that executes commands on change",
        usage=f"{APP_NAME} -path=<path> -exec=<command>",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-path",
        "--path",
        dest="path",
        default="",
        help="Path to watch (file or directory)",
    )
    parser.add_argument(
        "-exec",
        "--exec",
        dest="command",
        default="",
        help="Command to execute on file change",
    )
    parser.add_argument(
        "-verbose",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-version",
        "--version",
        dest="version",
        action="store_true",
        help="Show version",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit status: 0 on clean shutdown or -version,
        1 on usage or setup errors
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"{APP_NAME} version {APP_VERSION}")
        return 0

    if not args.path or not args.command:
        parser.print_help(sys.stderr)
        return 1

    try:
        config = DispatchConfig(path=args.path, command=args.command, verbose=args.verbose)
    except ValidationError as e:
        print(f"Error: {e.errors()[0]['msg']}", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    configure_logging()
    logger = get_logger(APP_NAME)

    try:
        EventLoop(config).run()
    except WatcherError as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
