#!/usr/bin/env python3
"""
forkpool CLI - run a command once per input line with bounded concurrency.

Usage:
    find . -name '*.log' | forkpool -j 4 -- gzip {}
    cat urls.txt | forkpool -j 8 -- curl -sO
    forkpool --debug -- echo < items.txt

Each line read from stdin is one item. "{}" in the command is replaced by the
item; without "{}" the item is appended as the last argument. Every item runs
in its own forked child, at most -j at a time.

Settings are read from the config file (--config), then FORKPOOL_* environment
variables, then command-line flags, later sources winning.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from collections.abc import Iterable, Iterator
from typing import TextIO

from . import __version__
from .config import PoolConfig, load_config
from .exceptions import PoolError
from .log import LogConfig, Logger, create_lg, derive_lg
from .manager import ProcessPoolManager

PLACEHOLDER = "{}"

# Exit code reported for a command that cannot be executed
COMMAND_NOT_FOUND = 127


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="forkpool",
        description="Run a command for each line of stdin with bounded concurrency.",
    )
    parser.add_argument(
        "-j",
        "--max-procs",
        type=int,
        default=None,
        metavar="N",
        help="maximum number of concurrent children (default: CPU count)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="run items serially in this process without forking",
    )
    parser.add_argument(
        "-c", "--config", default=None, metavar="FILE", help="YAML config file"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="log level (trace, debug, info, warning, error, false)",
    )
    parser.add_argument(
        "--version", action="version", version=f"forkpool {__version__}"
    )
    parser.add_argument("command", nargs="+", help="command and arguments to run")
    return parser


def expand_command(command: list[str], item: str) -> list[str]:
    """Substitute item for {} in command, or append it if there is none."""
    if any(PLACEHOLDER in arg for arg in command):
        return [arg.replace(PLACEHOLDER, item) for arg in command]
    return [*command, item]


def read_items(stream: TextIO) -> Iterator[str]:
    """Yield non-empty lines from stream, without line endings."""
    for line in stream:
        item = line.rstrip("\r\n")
        if item:
            yield item


def run_item(lg: Logger, command: list[str], item: str) -> int:
    """
    Run command for a single item and return its exit code.

    The command gets an empty stdin: the real one carries the items still
    waiting to be dispatched.
    """
    argv = expand_command(command, item)
    lg.trace("running", extra={"argv": argv})
    try:
        return subprocess.run(argv, stdin=subprocess.DEVNULL, check=False).returncode
    except FileNotFoundError:
        lg.error("command not found", extra={"cmd": argv[0]})
        return COMMAND_NOT_FOUND
    except PermissionError:
        lg.error("command not executable", extra={"cmd": argv[0]})
        return COMMAND_NOT_FOUND


def run_pool(
    pm: ProcessPoolManager, lg: Logger, command: list[str], items: Iterable[str]
) -> tuple[int, int]:
    """
    Dispatch one child per item and wait for all of them.

    Returns:
        (items run, items whose command failed)
    """
    count = 0
    failed = 0
    with pm:
        for item in items:
            count += 1
            if pm.spawn():
                continue

            code = run_item(lg, command, item)
            if code != 0:
                failed += 1
            pm.finish_current(code)

    failed += sum(1 for code in pm.exit_codes.values() if code != 0)
    return count, failed


def _section(config: dict, name: str) -> dict:
    section = config.get(name)
    if not isinstance(section, dict):
        section = config[name] = {}
    return section


def _resolve_config(args: argparse.Namespace) -> tuple[PoolConfig, LogConfig]:
    config = load_config(args.config)
    if args.max_procs is not None:
        _section(config, "pool")["max_concurrency"] = args.max_procs
    if args.debug:
        _section(config, "pool")["max_concurrency"] = 0
    if args.log_level is not None:
        _section(config, "logging")["level"] = args.log_level
    return PoolConfig.from_config(config), LogConfig.from_config(config)


def main(argv: list[str] | None = None, stdin: TextIO | None = None) -> int:
    """Main entry point for the forkpool CLI."""
    args = build_parser().parse_args(argv)
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("forkpool: no command given", file=sys.stderr)
        return 2

    try:
        pool_config, log_config = _resolve_config(args)
    except PoolError as e:
        print(f"forkpool: {e}", file=sys.stderr)
        return 2

    lg = create_lg("forkpool", log_config)
    pm = ProcessPoolManager.from_config(pool_config, lg=derive_lg(lg, "pool"))
    lg.debug(
        "pool ready",
        extra={"max": pool_config.max_concurrency, "cmd": command},
    )

    try:
        count, failed = run_pool(pm, lg, command, read_items(stdin or sys.stdin))
    except KeyboardInterrupt:
        return 130

    lg.info("done", extra={"items": count, "failed": failed})
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
