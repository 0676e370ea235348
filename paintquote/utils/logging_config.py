"""structlog configuration for PaintQuote."""

import logging

import structlog

from paintquote.utils.pipeline_logger import set_banners_enabled


def configure_logging(level: str = "INFO", banners: bool = False) -> None:
    """Configure structlog with timestamps and a console renderer.

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ...).
        banners: Whether to print pipeline banners to stdout.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )
    set_banners_enabled(banners)
