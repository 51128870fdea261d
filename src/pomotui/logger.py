"""Application-wide logger writing to platformdirs user_log_dir.

The terminal belongs to the timer display while it runs, so log records
go to a rotating file instead of stderr.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "pomotui"
_LOG_FILE = "pomotui.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_logger: logging.Logger | None = None


def get_logger(level: int | str | None = None, log_dir: Path | None = None) -> logging.Logger:
    """Return the ``pomotui`` package logger, initialising it on first call.

    Module loggers (``pomotui.core.timer`` and friends) propagate to it.
    *level* defaults to WARNING on first call; later calls change the level
    only when *level* is given.
    """
    global _logger
    if _logger is not None:
        if level is not None:
            _logger.setLevel(level)
        return _logger

    log_dir = log_dir if log_dir is not None else Path(user_log_dir(_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_dir / _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(level if level is not None else logging.WARNING)
    if not logger.handlers:
        logger.addHandler(handler)
    logger.propagate = False

    _logger = logger
    return _logger
