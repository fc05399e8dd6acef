"""Logging setup for the sensorhook service."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("sensorhook")

_installed_handler: logging.Handler | None = None


def configure_logging(level: str | int = "INFO") -> logging.Handler:
    """Send sensorhook logs to stderr at the given level.

    Calling this more than once replaces the previously installed handler.

    Returns:
        The handler now attached to the ``sensorhook`` logger.
    """
    global _installed_handler
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError("unknown log level")
    if _installed_handler is not None:
        logger.removeHandler(_installed_handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    _installed_handler = handler
    return handler


def log_exception(message: str) -> None:
    """Log message at ERROR level with the active exception's traceback."""
    logger.exception(message)
