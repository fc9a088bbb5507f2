"""Logging configuration for the redirector."""

import logging
import sys
import time
from contextlib import contextmanager


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``redirector`` logger hierarchy.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("redirector")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    return logger


@contextmanager
def log_duration(logger: logging.Logger, label: str):
    """Log how long the wrapped block took, at DEBUG, even when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s: %.1fms", label, (time.perf_counter() - start) * 1000)
