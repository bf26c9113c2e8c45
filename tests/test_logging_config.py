"""Logging setup tests."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator

import pytest
from rich.logging import RichHandler

from envsync.config.models import LoggingSettings
from envsync.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _reset_logger() -> Iterator[None]:
    logger = logging.getLogger("envsync")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in saved[0]:
        logger.addHandler(handler)
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_console_handler_uses_configured_level() -> None:
    configure_logging(LoggingSettings(level="ERROR"))

    logger = logging.getLogger("envsync")
    assert logger.level == logging.ERROR
    assert [type(h) for h in logger.handlers] == [RichHandler]


@pytest.mark.parametrize(("verbosity", "expected"), [(1, logging.INFO), (2, logging.DEBUG)])
def test_verbosity_lowers_level(verbosity: int, expected: int) -> None:
    configure_logging(LoggingSettings(level="WARNING"), verbosity=verbosity)

    assert logging.getLogger("envsync").level == expected


def test_file_handler_rotates_and_receives_records(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "env-sync.log"
    configure_logging(LoggingSettings(level="INFO", path=str(log_path), max_size_mb=1, backup_count=2))

    logging.getLogger("envsync.reconcile.engine").info("hello from a worker")
    for handler in logging.getLogger("envsync").handlers:
        handler.flush()

    file_handlers = [
        h for h in logging.getLogger("envsync").handlers if isinstance(h, RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 1024 * 1024
    assert file_handlers[0].backupCount == 2
    assert "hello from a worker" in log_path.read_text(encoding="utf-8")


def test_repeated_calls_replace_handlers(tmp_path: Path) -> None:
    settings = LoggingSettings(path=str(tmp_path / "a.log"))

    configure_logging(settings)
    configure_logging(settings)

    assert len(logging.getLogger("envsync").handlers) == 2


def test_unknown_level_falls_back_to_warning() -> None:
    configure_logging(LoggingSettings(level="chatty"))

    assert logging.getLogger("envsync").level == logging.WARNING
