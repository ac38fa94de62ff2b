# reqchain/log_config.py
"""Logging configuration for the reqchain library using Loguru.

Every reqchain module logs through the shared Loguru ``logger`` re-exported
here. Applications call :func:`configure_logging` once to pick the level and
sink; the library itself never reconfigures handlers on import.
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = "INFO", sink=sys.stderr) -> int:
    """
    Configures the Loguru logger for reqchain.

    Removes existing handlers and adds a new one with the specified level and sink.

    Args:
        level: The minimum logging level (e.g., "DEBUG", "TRACE", "WARNING").
        sink: The output sink (e.g., sys.stderr, "reqchain.log").

    Returns:
        int: The Loguru handler id of the newly added sink.
    """
    logger.remove()
    handler_id = logger.add(
        sink,
        level=level.upper(),
        format=LOG_FORMAT,
        colorize=sink is sys.stderr,  # Only colorize if writing to stderr
        backtrace=True,
        diagnose=True,
    )
    logger.debug(f"reqchain logging configured with level={level.upper()}")
    return handler_id


__all__ = ["LOG_FORMAT", "configure_logging", "logger"]
