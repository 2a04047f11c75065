"""Logging configuration for sphere_tracer."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "sphere_tracer"


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Set up the package logger with a single stderr handler.

    Calling this again only updates the level, so the handler is never
    duplicated. Output goes to stderr because stdout may carry the image.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or
            a numeric level.

    Returns:
        The configured ``sphere_tracer`` logger.

    Raises:
        ValueError: If level is not a known level name.
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
