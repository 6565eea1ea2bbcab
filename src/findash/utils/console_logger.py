"""Console logging for the command line front-end."""

from __future__ import annotations

import logging
from typing import IO, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "findash"
HANDLER_NAME = "findash-console"


def ensure_console_logger(
    logger: logging.Logger,
    handler_name: str = HANDLER_NAME,
    *,
    level: int = logging.INFO,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Attach a rich stderr handler to *logger* once and return it.

    Calling again with the same *handler_name* only adjusts the level.
    """
    for handler in logger.handlers:
        if handler.get_name() == handler_name:
            handler.setLevel(level)
            logger.setLevel(level)
            return handler

    console = Console(file=stream, stderr=stream is None)
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=False)
    handler.set_name(handler_name)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler


def configure_cli_logging(verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    ensure_console_logger(logger, level=logging.DEBUG if verbose else logging.WARNING)
    return logger
