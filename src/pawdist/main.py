#!/usr/bin/env python3
"""PAWDIST - tax proceeds distributor operations.

Entry point for the ``pawdist`` command.
"""

import logging
import sys

from pydantic import ValidationError

from pawdist.cli import create_parser, run_cli
from pawdist.config import PawdistConfig
from pawdist.observability.logging import configure_logging


def parse_args(argv: list[str] | None = None):
    """Parse command line arguments."""
    return create_parser().parse_args(argv)


def setup_logging() -> None:
    """Configure logging from the environment, falling back to defaults.

    Configuration errors are reported by the command itself.
    """
    try:
        config = PawdistConfig()
        configure_logging(level=config.log_level, log_format=config.log_format.value)
    except (ValidationError, ValueError):
        configure_logging()
        logging.getLogger(__name__).warning("Invalid logging configuration, using defaults")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for PAWDIST."""
    args = parse_args(argv)
    setup_logging()

    exit_code = run_cli(args)
    if exit_code < 0:
        # No subcommand given
        create_parser().print_help()
        sys.exit(0)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
