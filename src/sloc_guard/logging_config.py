"""
Logging configuration for sloc-guard.

Log records go to stderr through rich so that stdout stays reserved for
reports (JSON and SARIF output is piped into other tools). An optional
log file always records at DEBUG level, independent of ``-v``/``-q``.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "sloc_guard"
LOG_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def console_level(verbose: bool = False, quiet: bool = False) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def _console_handler(verbose: bool) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )


def _file_handler(log_file: Union[str, Path]) -> logging.FileHandler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    Install the stderr handler and, optionally, a DEBUG-level file handler.

    Calling it again replaces (and closes) the handlers of an earlier call.

    Args:
        verbose: Console shows DEBUG records
        quiet: Console shows ERROR records only
        log_file: Append every record to this file; parent directories are created

    Returns:
        The configured ``sloc_guard`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    console = _console_handler(verbose)
    console.setLevel(console_level(verbose, quiet))
    logger.addHandler(console)

    if log_file:
        logger.addHandler(_file_handler(log_file))
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console.level)
    logger.propagate = False
    return logger


def set_console_verbosity(verbose: bool = False, quiet: bool = False) -> None:
    """Change the console level only, keeping any log file handler in place."""
    logger = logging.getLogger(ROOT_LOGGER)
    level = console_level(verbose, quiet)
    consoles = [h for h in logger.handlers if isinstance(h, RichHandler)]
    if not consoles:
        setup_logging(verbose=verbose, quiet=quiet)
        return
    for handler in consoles:
        handler.setLevel(level)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        logger.setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the ``sloc_guard`` namespace.

    Args:
        name: Module name (e.g. ``sloc_guard.runner``); names outside the
              namespace are prefixed with it. None returns the root logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)

    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
