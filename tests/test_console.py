"""Tests for console log formatting."""

import logging
import sys
from collections.abc import Iterator

import pytest

from tacchain_e2e.config import Settings
from tacchain_e2e.utils.console import COLORS, ColorfulFormatter, configure_logging


def make_record(name: str, message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, message, None, None)


@pytest.fixture
def package_logger() -> Iterator[logging.Logger]:
    """The package logger, restored after the test."""
    logger = logging.getLogger("tacchain_e2e")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    handlers, level, propagate = saved
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_plain_format() -> None:
    """Without colors the line is time | level | component | message."""
    formatter = ColorfulFormatter(use_colors=False)
    record = make_record("tacchain_e2e.services.poller", "Reached height 12")

    line = formatter.format(record)

    parts = [part.strip() for part in line.split("|")]
    assert parts[1] == "INFO"
    assert parts[2] == "services.poller"
    assert parts[3] == "Reached height 12"
    assert "\033[" not in line


def test_colored_format_highlights_height() -> None:
    formatter = ColorfulFormatter(use_colors=True)
    record = make_record("tacchain_e2e.services.poller", "Reached height 12 (attempt 2/30)")

    line = formatter.format(record)

    assert f"{COLORS['bright_magenta']}height 12{COLORS['reset']}" in line
    assert f"{COLORS['cyan']}attempt 2/30{COLORS['reset']}" in line


def test_format_includes_exception() -> None:
    formatter = ColorfulFormatter(use_colors=False)
    try:
        raise ValueError("bad genesis")
    except ValueError:
        record = logging.LogRecord(
            "tacchain_e2e", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    assert "ValueError: bad genesis" in formatter.format(record)


def test_configure_logging_installs_one_handler(package_logger: logging.Logger) -> None:
    settings = Settings(log_level="DEBUG", log_colors=False)

    configure_logging(settings)
    configure_logging(settings)

    assert len(package_logger.handlers) == 1
    assert isinstance(package_logger.handlers[0].formatter, ColorfulFormatter)
    assert package_logger.level == logging.DEBUG
    assert package_logger.propagate is False
