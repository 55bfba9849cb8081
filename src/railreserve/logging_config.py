"""Loguru sink configuration."""

from __future__ import annotations

import sys

from loguru import logger

from railreserve.bus.activity_log import ACTIVITY_CHANNEL
from railreserve.config import Settings

LOG_FORMAT = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}:{function}:{line}</>",
        "{message}",
    )
)
ACTIVITY_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} {message}"


def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=settings.log_level)
    if settings.activity_log is not None:
        logger.add(
            settings.activity_log,
            format=ACTIVITY_FORMAT,
            level="INFO",
            filter=lambda record: record["extra"].get("channel") == ACTIVITY_CHANNEL,
            rotation="1 day",
            retention="30 days",
            enqueue=True,
        )
