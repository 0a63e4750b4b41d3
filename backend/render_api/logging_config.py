"""Logging configuration for the render API."""

import logging

from render_api.config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_log_level(settings: Settings) -> int:
    """DEBUG outside production, INFO in production, unless LOG_LEVEL is set."""
    if settings.LOG_LEVEL:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if isinstance(level, int):
            return level
    return logging.INFO if settings.is_production else logging.DEBUG


def configure_logging(settings: Settings) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=resolve_log_level(settings),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    # Driver chatter drowns out job logs at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
