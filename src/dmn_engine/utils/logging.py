"""Logging setup for the dmn-engine CLI.

The library only creates module loggers (logging.getLogger(__name__)) and
never installs handlers. Applications configure logging themselves; the
CLI calls configure_logging() once at startup.
"""

from __future__ import annotations

import logging
import sys

__all__ = [
    "LOG_FORMAT",
    "configure_logging",
]

LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a stderr handler to the dmn_engine logger.

    Calling it again replaces the previous handler instead of adding another.

    Args:
        level: Log level name (DEBUG, INFO, WARNING).

    Returns:
        The configured "dmn_engine" logger.
    """
    logger = logging.getLogger("dmn_engine")
    for handler in list(logger.handlers):
        if getattr(handler, "_dmn_engine_cli", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._dmn_engine_cli = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
