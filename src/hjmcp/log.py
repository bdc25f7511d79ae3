"""Logging setup for hjmcp.

Stdout carries protocol messages, so all log output goes to stderr.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def setup_logging(level: str | int = "WARNING") -> None:
    """Route the ``hjmcp`` loggers through a stderr RichHandler."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("hjmcp")
    logger.setLevel(level)

    # Avoid duplicate handlers if called twice
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=stderr_console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
