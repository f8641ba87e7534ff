"""Level-by-name logging used by the storage wrapper, the service and the CLI."""

from __future__ import annotations

import logging
from typing import Dict

from tokenstore.logging_setup import DEFAULT_TAG, get_logger

_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def log_message(msg: str, level: str = "INFO", tag: str = DEFAULT_TAG, **kwargs) -> None:
    """Write ``msg`` at the named ``level`` under ``tag``.

    Extra keyword arguments (``exc_info=True`` and friends) are forwarded to
    the underlying logger. An unknown level name is logged as a warning and
    the message itself is written at INFO.
    """
    logger = get_logger(tag)

    numeric_level = _LEVEL_MAP.get(str(level).upper())
    if numeric_level is None:
        logger.warning("Received unknown log level '%s'; defaulting to INFO.", level)
        numeric_level = logging.INFO

    logger.log(numeric_level, msg, **kwargs)
