"""Utility modules for PaintQuote."""

from paintquote.utils.logging_config import configure_logging
from paintquote.utils.pipeline_logger import (
    log_parse_start,
    log_stage_output,
    log_parse_complete,
    log_parse_failed,
    log_turn,
    log_paint_action,
    set_banners_enabled,
)

__all__ = [
    "configure_logging",
    "log_parse_start",
    "log_stage_output",
    "log_parse_complete",
    "log_parse_failed",
    "log_turn",
    "log_paint_action",
    "set_banners_enabled",
]
