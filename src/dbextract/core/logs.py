"""Logging setup.

Library modules log through `loguru.logger` directly; only entry points call
`configure_logging` to decide where records go.
"""

from __future__ import annotations

import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Replace the default sink with a stderr sink and an optional file sink."""
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level.upper())
    if log_file:
        logger.add(
            log_file,
            rotation="100 MB",
            retention="30 days",
            level=level.upper(),
            format=FILE_FORMAT,
        )
