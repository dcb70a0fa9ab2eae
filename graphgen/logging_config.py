"""Logging setup for graphgen.

Modules obtain loggers through :func:`get_logger`; only the command-line
entry point calls :func:`configure_logging`.
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "graphgen"


def configure_logging(
    level: Optional[str] = None, console: Optional[Console] = None
) -> logging.Logger:
    """Configure the package logger with a rich console handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR). Falls back to
            the ``GRAPHGEN_LOG_LEVEL`` environment variable, then WARNING.
        console: Console to log to (defaults to stderr).

    Returns:
        The configured package logger.
    """
    if level is None:
        level = os.environ.get("GRAPHGEN_LOG_LEVEL", "WARNING")

    log_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger for a graphgen module.

    Args:
        name: Module name, typically ``__name__``.

    Returns:
        Logger nested under the ``graphgen`` logger.
    """
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
