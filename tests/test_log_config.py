import sys
from io import StringIO

import pytest
from loguru import logger

from kyclient.log_config import LOG_FORMAT, configure_logging


def _only_handler():
    handler_id = list(logger._core.handlers.keys())[-1]
    return logger._core.handlers[handler_id]


def test_configure_logging_default_level_and_sink():
    """Test configure_logging with default INFO level and stderr sink."""
    logger.remove()  # Ensure clean state

    configure_logging()  # Defaults to INFO and sys.stderr

    assert len(logger._core.handlers) == 1
    assert _only_handler()._levelno == logger.level("INFO").no


@pytest.mark.parametrize("level", ["debug", "WARNING", "Error"])
def test_configure_logging_custom_level(level):
    """Test configure_logging accepts levels in any casing."""
    configure_logging(level=level)
    assert _only_handler()._levelno == logger.level(level.upper()).no


def test_configure_logging_removes_existing_handlers():
    """Test that configure_logging removes pre-existing handlers."""
    logger.remove()
    logger.add(lambda _: None, level="ERROR")
    assert len(logger._core.handlers) == 1

    configure_logging(level="INFO")  # This should remove the dummy handler

    assert len(logger._core.handlers) == 1
    assert _only_handler()._levelno == logger.level("INFO").no


def test_configure_logging_writes_formatted_records():
    """Test records reach a custom sink in the standard format, uncolored."""
    stream = StringIO()
    configure_logging(level="WARNING", sink=stream)

    logger.info("hidden")
    logger.warning("Retrying GET https://api.example.com/p")

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert "| WARNING  |" in lines[0]
    assert lines[0].endswith("- Retrying GET https://api.example.com/p")
    assert "\x1b[" not in lines[0]
    assert "{message}" in LOG_FORMAT


@pytest.fixture(autouse=True)
def reset_logger_after_test():
    """Fixture to reset Loguru to a default state after each test in this module."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="INFO")  # Restore a basic default handler
