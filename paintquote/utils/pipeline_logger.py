"""Pipeline Output Logger for PaintQuote.

Provides formatted logging for quote parsing runs and conversation turns.
Structured events always go to structlog; the visual banners are printed only
when banners are enabled (LOG_BANNERS=true).
"""

import json
import structlog
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
PARSE_BANNER_CHAR = "█"
STAGE_BANNER_CHAR = "─"
TURN_BANNER_CHAR = "═"

_banners_enabled = False


def set_banners_enabled(enabled: bool) -> None:
    """Turn banner printing on or off."""
    global _banners_enabled
    _banners_enabled = enabled


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _truncate_large_values(data: Dict[str, Any], max_length: int = 500) -> Dict[str, Any]:
    """Truncate large string values for display purposes."""
    if not isinstance(data, dict):
        return data

    result = {}
    for key, value in data.items():
        if isinstance(value, str) and len(value) > max_length:
            result[key] = value[:max_length] + f"... [truncated {len(value) - max_length} chars]"
        elif isinstance(value, dict):
            result[key] = _truncate_large_values(value, max_length)
        elif isinstance(value, list) and len(value) > 10:
            result[key] = value[:10] + [f"... and {len(value) - 10} more items"]
        else:
            result[key] = value
    return result


def _print_block(char: str, title: str, lines: List[str]) -> None:
    if not _banners_enabled:
        return
    print("\n")
    print(char * BANNER_WIDTH)
    print(_create_banner(char, title))
    print(char * BANNER_WIDTH)
    for line in lines:
        print(line)
    print(char * BANNER_WIDTH)


def log_parse_start(input_length: int, model_backed: bool) -> None:
    """Log the start of a parsing run."""
    timestamp = datetime.now(timezone.utc).isoformat()
    _print_block(PARSE_BANNER_CHAR, "QUOTE PARSE STARTED", [
        f"║ Timestamp    : {timestamp}",
        f"║ Input Length : {input_length}",
        f"║ Backend      : {'model' if model_backed else 'fallback (regex)'}",
    ])
    logger.info("quote_parse_started", input_length=input_length, model_backed=model_backed)


def log_stage_output(stage: str, output: Dict[str, Any]) -> None:
    """Log the output of one pipeline stage."""
    display = _truncate_large_values(output)
    _print_block(STAGE_BANNER_CHAR, f"STAGE: {stage.upper()}", [_format_json(display)])
    logger.debug(
        "quote_parse_stage_completed",
        stage=stage,
        fields=sorted(k for k, v in output.items() if v not in (None, "", [], {}))
    )


def log_parse_complete(
    confidence_score: int,
    missing_fields: List[str],
    warnings: List[str]
) -> None:
    """Log a completed parsing run."""
    _print_block(PARSE_BANNER_CHAR, "✓ QUOTE PARSE COMPLETED", [
        f"║ Confidence     : {confidence_score}%",
        f"║ Missing Fields : {', '.join(missing_fields) if missing_fields else 'None'}",
        f"║ Warnings       : {len(warnings)}",
    ])
    logger.info(
        "quote_parse_completed",
        confidence_score=confidence_score,
        missing_fields=missing_fields,
        warning_count=len(warnings)
    )


def log_parse_failed(error: str, stage: Optional[str] = None) -> None:
    """Log a failed parsing run."""
    _print_block("!", "✗ QUOTE PARSE FAILED", [
        f"║ Stage : {stage or 'unknown'}",
        f"║ Error : {error}",
    ])
    logger.error("quote_parse_failed", stage=stage, error=error)


def log_turn(
    company_id: str,
    stage: str,
    next_stage: str,
    used_fallback: bool,
    extracted_fields: List[str]
) -> None:
    """Log one processed conversation turn."""
    _print_block(TURN_BANNER_CHAR, "CONVERSATION TURN", [
        f"║ Company   : {company_id}",
        f"║ Stage     : {stage} -> {next_stage}",
        f"║ Fallback  : {used_fallback}",
        f"║ Extracted : {', '.join(extracted_fields) if extracted_fields else 'None'}",
    ])
    logger.info(
        "conversation_turn_processed",
        company_id=company_id,
        stage=stage,
        next_stage=next_stage,
        used_fallback=used_fallback,
        extracted_fields=extracted_fields
    )


def log_paint_action(action_type: str, status: str, data: Dict[str, Any], error: Optional[str] = None) -> None:
    """Log the outcome of a paint catalog action."""
    if status == "failed":
        logger.warning("paint_action_failed", action_type=action_type, data=data, error=error)
    else:
        logger.info("paint_action_completed", action_type=action_type, status=status, data=data)
