"""
Logging utilities for the room directory service.

Provides centralized logging configuration and helper functions.
"""

import logging
import sys
from typing import Optional


def shorten(text: str, limit: int = 120) -> str:
    """Clip long upstream messages for log lines and user-facing errors."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ or module name)
        level: Optional log level override

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)

    return logger


def setup_logging(level: int = logging.INFO, debug_modules: Optional[list[str]] = None) -> None:
    """
    Configure root logging for the application.

    Args:
        level: Default log level for the application
        debug_modules: List of module names to set to DEBUG level
    """
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if debug_modules:
        for module in debug_modules:
            logging.getLogger(module).setLevel(logging.DEBUG)
