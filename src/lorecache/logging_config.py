"""
Logging configuration for lorecache.

Storage and fetch failures are reported through the ``lorecache`` logger;
library chatter from the HTTP stack is kept quiet unless verbose.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Handler:
    """
    Install a rich handler on the ``lorecache`` logger.

    Args:
        verbose: If True, log DEBUG and let library loggers through.
        console: Console to render to (defaults to stderr).

    Returns:
        The installed handler, so callers can remove it again.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger("lorecache")

    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return handler
