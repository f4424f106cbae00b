"""
Command-line interface for the myshell interactive shell.

This module provides the main CLI entry point: it parses the command-line
options, loads the configuration and runs either a single command line
(``-c``) or the interactive loop.
"""

import argparse
import logging
import sys
import tomllib
from pathlib import Path

from ..config import get_config, set_config_path
from ..config.validators import LOG_LEVELS
from ..validation import ValidationError, handle_cli_error
from .shell import InteractiveShell

# --- Logging Setup ---
# Standard output belongs to the commands the shell runs.
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="myshell",
        description="Interactive shell with pipelines and a resident resource profiler.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a config.toml file. Defaults to conf/config.toml in the project root.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the [shell] log_level setting.",
    )
    parser.add_argument(
        "-c",
        "--command",
        type=str,
        help="Execute a single command line and exit with its status.",
    )
    return parser


def main_cli() -> None:
    """
    Main command-line interface for myshell.

    Loads the configuration, applies the log level and runs the shell.

    Raises:
        SystemExit: Always, with the exit code of the last executed line,
            or 1 on configuration errors.
    """
    args = build_parser().parse_args()

    if args.config is not None:
        set_config_path(args.config)

    try:
        app_config = get_config()
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    log_level = args.log_level or app_config.shell.log_level
    logging.getLogger().setLevel(getattr(logging, log_level))
    logger.debug(f"Log level set to {log_level}")

    shell = InteractiveShell(config=app_config)

    if args.command is not None:
        shell.execute_line(args.command)
        sys.exit(shell.exit_code)

    sys.exit(shell.run())


if __name__ == "__main__":
    main_cli()
