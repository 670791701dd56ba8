"""The shared application logger."""

from __future__ import annotations

import logging

LOGGER_NAME = "cloud-nuke"
TRACE = 5

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


def get_logger() -> logging.Logger:
    """Return the application logger, attaching a console handler once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("[%(name)s] %(asctime)s %(levelname)s %(message)s", "%Y-%m-%dT%H:%M:%S")
        )
        logger.addHandler(handler)
        if logger.level == logging.NOTSET:
            logger.setLevel(logging.INFO)
    return logger


def parse_level(name: str) -> int:
    """Turn a level name such as 'info' or 'DEBUG' into a logging level."""
    try:
        return _LEVELS[name.lower()]
    except KeyError:
        raise ValueError(f"not a valid log level: {name!r}") from None


def set_log_level(name: str) -> int:
    """Set the application logger's level by name and return the level."""
    level = parse_level(name)
    get_logger().setLevel(level)
    return level