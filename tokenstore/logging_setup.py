"""Logging for the token storage wrapper, the token service and the CLI.

Records go to a size-rotated file (and optionally the console) through a
single ``tokenstore`` logger. Each line carries a short tag naming the layer
that wrote it, e.g. ``[STORE]`` or ``[CLI]``.
"""

from __future__ import annotations

import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from tokenstore.config import get_env, settings

LOGGER_NAME = "tokenstore"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5 MB per log file
DEFAULT_BACKUP_COUNT = 7
DEFAULT_TAG = "GEN"

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(tag)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class TaggedLogger(logging.LoggerAdapter):
    """Adds the adapter's ``tag`` to every record that does not set one."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("tag", self.extra.get("tag", DEFAULT_TAG))
        kwargs["extra"] = extra
        return msg, kwargs


def _level_from(name: Optional[str]) -> int:
    wanted = str(name or get_env("TOKENSTORE_LOG_LEVEL", default="INFO")).upper()
    level = logging.getLevelName(wanted)
    if isinstance(level, int):
        return level
    print(f"tokenstore logger: unknown log level '{wanted}', using INFO.", file=sys.stderr)
    return logging.INFO


def _console_enabled() -> bool:
    flag = get_env("TOKENSTORE_LOG_TO_CONSOLE", default=True)
    return str(flag).lower() in ("true", "1", "yes", "on")


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def configure_logging(
    *,
    log_path: Optional[Path] = None,
    level: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    force: bool = False,
) -> logging.Logger:
    """Attach handlers to the ``tokenstore`` logger.

    Repeated calls are no-ops unless ``force`` is set or a new ``log_path``
    is given. A log file that cannot be opened is reported on stderr and the
    logger keeps working with whatever handlers remain.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers and not force and log_path is None:
        if level is not None:
            logger.setLevel(_level_from(level))
        return logger

    _drop_handlers(logger)
    logger.setLevel(_level_from(level))
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime

    target = Path(log_path) if log_path is not None else settings.log_path
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            target,
            maxBytes=max_bytes or DEFAULT_MAX_BYTES,
            backupCount=backup_count or DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        print(f"tokenstore logger: unable to open log file {target}: {exc}", file=sys.stderr)
    else:
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if _console_enabled():
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(tag: str = DEFAULT_TAG) -> TaggedLogger:
    """Tagged adapter over the shared logger, configuring it on first use."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        configure_logging()
    return TaggedLogger(logger, {"tag": tag})


def reset_logging() -> None:
    """Remove all handlers so the next ``get_logger`` call reconfigures."""
    _drop_handlers(logging.getLogger(LOGGER_NAME))
