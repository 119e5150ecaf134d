"""
Command-line interface for lip.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from lip.config import load_config
from lip.context import LipContext
from lip.__version__ import __version__
from lip.exceptions import ConfigError, LipError
from lip.utils.console import print_error, print_warning, reconfigure_console
from lip.utils.logger import get_logger, level_for_verbosity, setup_logging

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="LIP_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option("--quiet", "-q", is_flag=True, help="Only report errors.")
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="LIP_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="lip",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    quiet: bool,
    color: bool,
) -> None:
    """lip: package manager for tooths.

    \b
    Available commands:
      lip install      Install tooths and their dependencies
      lip uninstall    Uninstall tooths
      lip autoremove   Remove dependencies no longer needed
      lip list         List installed tooths
      lip show         Show details of an installed tooth
      lip cache        Inspect or purge the archive cache

    \b
    Examples:
      lip install github.com/tooth-hub/corepack
      lip install ./example.tth
      lip -v install --upgrade github.com/tooth-hub/corepack

    Use ``lip COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose, quiet)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    lip_ctx = LipContext()
    lip_ctx.config_path = config or loaded_config.source_path
    lip_ctx.color = color
    lip_ctx.verbose = verbose
    lip_ctx.quiet = quiet
    lip_ctx.config = loaded_config
    ctx.obj = lip_ctx

    logger.debug("lip v%s", __version__)
    logger.debug("Config path: %s", lip_ctx.config_path)
    logger.debug("Configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Quiet: %s | Color: %s", verbose, quiet, color)


def _configure_logging(verbose: int, quiet: bool) -> None:
    """Configure logging level based on verbosity flags."""
    level = level_for_verbosity(verbose, quiet=quiet)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from lip.commands.cache import cache  # noqa: E402
from lip.commands.install import install  # noqa: E402
from lip.commands.uninstall import uninstall  # noqa: E402
from lip.commands.list import list_command, show  # noqa: E402
from lip.commands.autoremove import autoremove_command  # noqa: E402

cli.add_command(install)
cli.add_command(uninstall)
cli.add_command(autoremove_command)
cli.add_command(list_command)
cli.add_command(show)
cli.add_command(cache)


def main() -> int:
    """Main entry point for the lip CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except LipError as exc:
        print_error(str(exc))
        logger.debug(
            "LipError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
