"""
Logging configuration for PHP Insight.

Module loggers live under the ``php_insight`` namespace and write through a
rich handler on stderr, so the JSON report on stdout stays clean.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "php_insight"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def _console_handler(verbose: bool) -> logging.Handler:
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )


def _file_handler(log_file: Union[str, Path]) -> logging.Handler:
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    Configure the php_insight logger.

    Safe to call more than once: each call replaces the handlers installed by
    the previous one, so the API and the CLI can both configure logging in
    the same process.

    Args:
        verbose: Enable DEBUG level logging (parse failures, skipped tools)
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to append logs to

    Returns:
        The configured php_insight logger
    """
    level = _level(verbose, quiet)

    handlers = [_console_handler(verbose)]
    if log_file:
        handlers.append(_file_handler(log_file))

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the php_insight namespace.

    Args:
        name: Module name (e.g., 'php_insight.core.pipeline'); names outside
              the namespace are prefixed with it. None returns the root
              php_insight logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)

    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
