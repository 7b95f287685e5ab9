"""
Logging setup.

Configures loguru sinks for the commission manager.
"""

import sys

from loguru import logger

from commission_manager.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """
    Configure logger with stderr and optional file rotation.

    Args:
        settings: Application settings (log_level, log_file)
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level.upper(),
            encoding="utf-8",
        )

    logger.debug(
        "Logging configured",
        extra={"level": settings.log_level, "file": settings.log_file},
    )
