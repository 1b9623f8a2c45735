"""Logging configuration using loguru.

Execution modules log through stdlib ``logging.getLogger(__name__)``; the
intercept handler below forwards those records, together with uvicorn's, into
loguru so that everything shares one sink and one format.
"""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Libraries that are chatty at INFO and below.
_NOISY_LOGGERS = ("uvicorn.access", "websockets", "watchfiles", "asyncio")


class _InterceptHandler(logging.Handler):
    """Re-emit a stdlib record through loguru at the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames that belong to the logging module itself.
        frame, depth = inspect.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "WARNING") -> None:
    """Make loguru the only sink, filtering at *level*.

    The CLI and the app lifespan both call this; a later call replaces the
    earlier configuration.
    """
    level = level.upper()
    logger.configure(handlers=[{"sink": sys.stderr, "level": level, "format": LOG_FORMAT}])
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    quiet = logging.NOTSET if level == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)

    logger.debug("Logging initialised (level={})", level)
