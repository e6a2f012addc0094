"""Logging setup for the API process.

Module loggers are created with ``logging.getLogger(__name__)``; this module
only configures the root logger once at startup. Level comes from the
``LOG_LEVEL`` setting (default INFO).
"""

import logging
import sys

from app.core.config import settings

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level() -> int:
    """Resolve the configured level name, falling back to INFO."""
    return LOG_LEVEL_MAP.get(settings.LOG_LEVEL.upper(), logging.INFO)


def setup_logging() -> None:
    """Configure the root logger to write to stdout."""
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    log_level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)
