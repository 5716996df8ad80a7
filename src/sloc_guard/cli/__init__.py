"""CLI entry point. Importing this package registers every subcommand."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..logging_config import setup_logging
from ._common import console

app = typer.Typer(
    name="sloc-guard",
    help="sloc-guard - source line and directory structure limits",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sloc-guard {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Enable verbose (DEBUG) logging",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file",
        help="Append DEBUG-level logs to this file",
        envvar="SLOC_GUARD_LOG_FILE",
        dir_okay=False,
    ),
    version: Optional[bool] = typer.Option(
        None, "--version",
        help="Show version and exit",
        callback=_version_callback, is_eager=True,
    ),
):
    """Enforce per-file SLOC limits and directory structure rules."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)


def main() -> None:
    app()


# Import subcommands to register them
from .check import check as _check  # noqa: F401, E402
from .stats import stats as _stats  # noqa: F401, E402
from .init import init as _init  # noqa: F401, E402
from .explain import explain as _explain  # noqa: F401, E402
from .config_cmd import config_app as _config_app  # noqa: F401, E402
from .baseline import baseline_app as _baseline_app  # noqa: F401, E402
