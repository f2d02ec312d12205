"""
Package wide logger for gitsubdir.

Library code only logs through this logger; presentation (colors, progress
lines) belongs to the CLI.
"""

import logging
import sys


LOGGER_NAME = "GitSubdir"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str = LOGGER_NAME, level: int = logging.INFO) -> logging.Logger:
    """
    Create (or fetch) the named logger with a single stderr handler.

    Calling it again does not stack handlers.
    """

    _logger = logging.getLogger(name)
    _logger.setLevel(level)

    if not _logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _logger.addHandler(handler)

    # Do not duplicate records through the root logger
    _logger.propagate = False
    return _logger


logger = setup_logger()


__all__ = ["LOGGER_NAME", "logger", "setup_logger"]
