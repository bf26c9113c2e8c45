"""Logging setup driven by :class:`~envsync.config.models.LoggingSettings`."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from envsync.config.models import LoggingSettings

_FILE_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"
_MARKER = "_envsync_handler"


def configure_logging(settings: LoggingSettings, *, verbosity: int = 0) -> None:
    """Install env-sync log handlers on the package logger.

    Calling this more than once replaces the handlers from the previous call.

    Args:
        settings: Logging section of the loaded configuration.
        verbosity: Count of ``-v`` flags; 1 forces INFO, 2 or more forces DEBUG.
    """
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = min(level, logging.INFO)

    logger = logging.getLogger("envsync")
    for handler in [h for h in logger.handlers if getattr(h, _MARKER, False)]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbosity >= 2,
    )
    setattr(console_handler, _MARKER, True)
    logger.addHandler(console_handler)

    if settings.path:
        log_path = Path(settings.path).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.backup_count),
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        setattr(file_handler, _MARKER, True)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False


__all__ = ["configure_logging"]
