"""Loguru setup shared by every kyclient module.

Library code imports `logger` from here and never configures handlers on
import. Applications that want kyclient's output in a consistent shape call
`configure_logging` once at startup.
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = "INFO", sink=sys.stderr):
    """Route kyclient logs to a single handler.

    Every handler already registered on the Loguru logger is dropped first, so
    calling this twice does not duplicate output.

    Args:
        level: Lowest level written, in any casing ("debug", "WARNING", ...).
        sink: Anything Loguru accepts as a sink: a stream, a path or a callable.
            Color markup is only rendered when writing to stderr.
    """
    level = level.upper()
    logger.remove()
    logger.add(
        sink,
        level=level,
        format=LOG_FORMAT,
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=False,  # tracebacks must not dump header values
    )
    logger.info(f"kyclient logging enabled at {level} on {sink}")


__all__ = ["LOG_FORMAT", "configure_logging", "logger"]
