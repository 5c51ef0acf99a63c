"""
Logging configuration

Console output always; daily-rotated files under settings.log_dir unless it
is set to an empty string. Modules log through the shared `log` object.
"""
from loguru import logger
import os
import sys
from typing import Optional
from app.config import Settings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def _daily_file(log_dir: str, prefix: str) -> str:
    return os.path.join(log_dir, prefix + "_{time:YYYY-MM-DD}.log")


def setup_logger(settings: Optional[Settings] = None):
    """(Re)configure sinks from settings and return the loguru logger"""
    settings = settings or get_settings()
    logger.remove()

    # Console; variable values in tracebacks only while debugging
    logger.add(
        sys.stdout,
        colorize=True,
        format=CONSOLE_FORMAT,
        level=settings.log_level,
        diagnose=settings.debug
    )

    if not settings.log_dir:
        return logger

    # Everything from INFO up, one file per day
    logger.add(
        _daily_file(settings.log_dir, "store_insights"),
        rotation="00:00",
        retention="30 days",
        compression="zip",
        level="INFO",
        diagnose=False
    )

    # Errors kept longer for incident review
    logger.add(
        _daily_file(settings.log_dir, "errors"),
        rotation="00:00",
        retention="90 days",
        level="ERROR",
        diagnose=False
    )

    return logger


log = setup_logger()
