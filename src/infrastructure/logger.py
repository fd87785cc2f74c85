"""
Logging configuration for the photo edit backend.
"""
from __future__ import annotations

import logging
import os
import sys


def setup_logger(name: str = "photoedit", level: str | None = None) -> logging.Logger:
    """
    Set up the application logger.

    Args:
        name: Logger name; module loggers are created as children of it
        level: Log level name, defaults to the LOG_LEVEL environment variable

    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level, logging.INFO))

    # Avoid duplicate handlers when create_app runs more than once
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level, logging.INFO))
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger


def get_logger(module: str) -> logging.Logger:
    return logging.getLogger(f"photoedit.{module}")
