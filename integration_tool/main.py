#!/usr/bin/env python3
"""
GitHub Integration Tool - Main Entry Point

Merges a list of sub-PRs into a release branch, one merge commit per PR,
and opens a single draft integration PR describing them.

Usage:
    gh-integration-tool --config config.json
    gh-integration-tool --continue      # after resolving a merge conflict
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_CONFIG_FILE, DEFAULT_LOG_DIR, DEFAULT_STATE_FILE
from .errors import IntegrationError
from .orchestrator import IntegrationOrchestrator
from .tools import FileStateStore
from .utils import setup_logging, get_logger


EXIT_OK = 0
EXIT_FAILED = 1


def cmd_start(args, orchestrator: IntegrationOrchestrator) -> int:
    """Handle `--config`."""
    logger = get_logger()
    config_file = Path(args.config)
    logger.info("Starting new integration process", extra={"data": {"config_file": str(config_file.resolve())}})

    session = orchestrator.start_from_file(config_file)
    return _report(session)


def cmd_continue(args, orchestrator: IntegrationOrchestrator) -> int:
    """Handle `--continue`."""
    get_logger().info("Continuing integration process")

    session = orchestrator.resume()
    return _report(session)


def _report(session) -> int:
    if session.is_paused:
        return EXIT_FAILED
    print("Integration completed successfully!")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-integration-tool",
        description="GitHub Integration Tool - Creates integration PRs from multiple sub-PRs"
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--config",
        nargs="?",
        const=DEFAULT_CONFIG_FILE,
        metavar="PATH",
        help=f"Start a new integration from a JSON config file (default: {DEFAULT_CONFIG_FILE})"
    )
    mode.add_argument(
        "--continue",
        dest="continue_",
        action="store_true",
        help="Continue after resolving merge conflicts"
    )
    parser.add_argument(
        "--state-file",
        type=str,
        default=DEFAULT_STATE_FILE,
        help=f"Integration state file (default: {DEFAULT_STATE_FILE})"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=DEFAULT_LOG_DIR,
        help=f"Directory for JSON log files (default: {DEFAULT_LOG_DIR})"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Also print debug logging to the console"
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(
        level=logging.DEBUG,
        log_dir=Path(args.log_dir),
        console=args.debug,
    )
    logger = get_logger()
    logger.info("Starting GitHub Integration Tool", extra={"data": {"args": argv if argv is not None else sys.argv[1:]}})

    orchestrator = IntegrationOrchestrator(FileStateStore(Path(args.state_file)))

    try:
        if args.continue_:
            code = cmd_continue(args, orchestrator)
        else:
            code = cmd_start(args, orchestrator)
    except IntegrationError as e:
        logger.error("Integration failed", extra={"data": {"error": str(e), "kind": type(e).__name__}})
        print(f"Error: {e}")
        code = EXIT_FAILED
    except Exception as e:
        logger.exception(f"Unhandled exception: {e}")
        print(f"Error: {e}")
        code = EXIT_FAILED

    sys.exit(code)


if __name__ == "__main__":
    main()
