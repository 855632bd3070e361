"""Logging utilities for pictura.

All output goes through a single ``pictura`` logger:
- info/debug messages are written to stdout without decoration
- warnings/errors are written to stderr with a level prefix
- ``--verbose`` enables per-image and per-post debug lines
"""

import logging
import sys

LOGGER_NAME = "pictura"

_logger: logging.Logger | None = None

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR


class CleanFormatter(logging.Formatter):
    """Formatter that outputs the bare message."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


class PrefixFormatter(logging.Formatter):
    """Formatter that prefixes warnings and errors with their level name."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.capitalize()}: {record.getMessage()}"
        return record.getMessage()


class MaxLevelFilter(logging.Filter):
    """Only let through records strictly below ``max_level``."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the pictura logger.

    Args:
        verbose: Show debug-level messages.
        quiet: Only show warnings and errors. Ignored when verbose is set.

    Returns:
        The configured logger instance.
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(CleanFormatter())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(PrefixFormatter())

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Get the pictura logger, initializing with defaults if needed."""
    global _logger
    if _logger is None:
        _logger = setup_logging(verbose=False)
    return _logger


def debug(msg: str) -> None:
    """Log a debug message (only shown with --verbose)."""
    get_logger().debug(msg)


def info(msg: str) -> None:
    get_logger().info(msg)


def warning(msg: str) -> None:
    get_logger().warning(msg)


def error(msg: str) -> None:
    get_logger().error(msg)


def failure(item: str, exc: BaseException) -> None:
    """Log a failed content item together with the error that stopped it."""
    get_logger().error(f"{item}: {exc}")
    if exc.__cause__ is not None:
        get_logger().debug(f"  caused by {type(exc.__cause__).__name__}: {exc.__cause__}")
