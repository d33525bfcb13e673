"""Log level selection and logging setup for the lms CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Literal, Optional

import click

LogLevel = Literal["debug", "info", "warn", "error", "none"]

LOG_LEVELS: tuple[LogLevel, ...] = ("debug", "info", "warn", "error", "none")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_LEVEL_NUMBERS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_installed_handler: Optional[logging.Handler] = None


def resolve_log_level(
    log_level: Optional[str] = None, verbose: bool = False, quiet: bool = False
) -> LogLevel:
    """Combine ``--log-level``, ``--verbose`` and ``--quiet`` into one level.

    At most one of them may be given.
    """
    specified = sum([log_level is not None, verbose, quiet])
    if specified > 1:
        raise click.UsageError("Only one of --log-level, --verbose, or --quiet can be specified.")
    if verbose:
        return "debug"
    if quiet:
        return "none"
    if log_level is None:
        return "info"
    if log_level not in LOG_LEVELS:
        raise click.UsageError(f"Unknown log level: {log_level}")
    return log_level  # type: ignore[return-value]


def configure_logging(level: LogLevel, log_file: Optional[Path] = None) -> None:
    """Install a single handler on the ``lms`` logger for *level*.

    Records go to stderr, or to *log_file* when given. Level ``none``
    silences the ``lms`` logger entirely.
    """
    global _installed_handler

    logger = logging.getLogger("lms")
    if _installed_handler is not None:
        logger.removeHandler(_installed_handler)
        _installed_handler.close()
        _installed_handler = None

    if level == "none":
        logger.setLevel(logging.CRITICAL + 1)
        return

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(_LEVEL_NUMBERS[level])
    _installed_handler = handler
