from collections.abc import Callable
import functools
import os
import sys
import traceback

import click
from loguru import logger

from .checker import MirrorChecker
from .config_parser import Parser
from .constants import MIRROR_CONFIG_FILE
from .logger import setup_logger
from .typed_path import AbsFile, RelFile
from .types import ExitCode
from .workspace import MirrorWorkspace


def check_for_errors[**P](command: Callable[P, ExitCode | None]) -> Callable[P, None]:
    """Report anything a command raises as a single error line and exit with its code."""

    @functools.wraps(command)
    def run(*args: P.args, **kwargs: P.kwargs) -> None:
        try:
            exitcode = command(*args, **kwargs)
        except Exception as e:
            logger.debug(f"{command.__name__} raised {type(e).__name__}.")
            logger.trace(traceback.format_exc())
            logger.error(f"{type(e).__name__}: {e}")
            sys.exit(1)
        if exitcode is not None:
            sys.exit(exitcode)

    return run


def load_workspace(config_file: str) -> MirrorWorkspace:
    path = AbsFile(config_file) if os.path.isabs(config_file) else RelFile(config_file)
    return MirrorWorkspace.from_config(Parser.parse_file(path))


config_option = click.option(
    "--config-file",
    "--config",
    "-c",
    default=os.fspath(MIRROR_CONFIG_FILE),
    help="JSON file describing the workspace and its mirrors.",
)


@click.group(context_settings=dict(show_default=True))
@click.option("-v", "--verbose", count=True, help="Log more (-v debug, -vv trace).")
@click.option("-q", "--quiet", count=True, help="Log less (-q warnings, -qq errors, -qqq critical).")
@check_for_errors
def main(quiet: int, verbose: int) -> None:
    setup_logger(quiet, verbose)


@main.command()
@config_option
@check_for_errors
def sync(config_file: str) -> ExitCode:
    """Clone or fetch every source repository and mirror-push it to its destination.

    \b
    Examples:
    # Sync using the default config.
    repomirror sync

    \b
    # Sync using a local config.
    repomirror sync --config mirrors.json
    """
    workspace = load_workspace(config_file)
    return int(not workspace.sync())


@main.command()
@config_option
@check_for_errors
def check(config_file: str) -> ExitCode:
    """Check the local copies against the config without contacting any remote.

    \b
    Example:
    # Check the mirrors from a local config.
    repomirror check -c mirrors.json
    """
    return MirrorChecker(load_workspace(config_file)).check()
