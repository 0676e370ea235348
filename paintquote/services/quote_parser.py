"""Quote Data Parser.

Four-stage pipeline that turns a free-text job description into a
ParsingResult:

1. Primary extraction (strategy; failure is fatal)
2. Validation (strategy; failure keeps stage 1 output)
3. Derived-field enrichment (pure)
4. Quality assessment (pure)

The same contract holds for the model-backed and the regex strategy; the
regex strategy additionally adds a lower-accuracy warning.
"""

from typing import Dict, Any, List, Optional

import structlog
from pydantic import ValidationError

from paintquote.config.settings import Settings, settings as default_settings
from paintquote.config.errors import ExtractionError
from paintquote.models.quote_data import ParsedQuoteData, ParsingResult, QuoteEnhancements
from paintquote.services.extraction_strategy import ExtractionStrategy, build_extraction_strategy
from paintquote.utils.pipeline_logger import (
    log_parse_start,
    log_stage_output,
    log_parse_complete,
    log_parse_failed,
)

logger = structlog.get_logger()


EMPTY_INPUT_ERROR = "Input text is empty"
GENERIC_CLARIFICATION = "Please provide more details about your painting project."
FALLBACK_WARNING = "Using fallback parser - results may be lower accuracy than model-backed extraction"

# Fields counted toward confidence_score
EXPECTED_FIELDS = (
    "customer_name",
    "property_address",
    "project_type",
    "ceiling_included",
    "doors_included",
    "trim_included",
    "windows_included",
    "primer_included",
    "linear_feet",
    "wall_height_ft",
    "walls_sqft",
    "ceilings_sqft",
    "paint_brand",
    "paint_product",
    "paint_sheen",
    "spread_rate_sqft_per_gallon",
    "paint_cost_per_gallon",
    "labor_cost_per_sqft",
    "markup_percent",
    "wall_labor_rate",
)

CRITICAL_FIELDS = (
    ("customer_name", "Customer name"),
    ("property_address", "Property address"),
    ("walls_sqft", "Wall square footage"),
    ("labor_cost_per_sqft", "Labor cost per square foot"),
)


def _format_number(value: float):
    return int(value) if float(value).is_integer() else value


# =============================================================================
# Pure stages
# =============================================================================


def enrich_with_calculations(data: ParsedQuoteData) -> ParsedQuoteData:
    """Derive wall area from linear feet x wall height.

    Only applies when walls_sqft was not supplied. Idempotent: a second pass
    sees walls_sqft already set and returns the record unchanged.

    Args:
        data: Extracted quote data.

    Returns:
        A new ParsedQuoteData (the input is not modified).
    """
    if data.linear_feet and data.wall_height_ft and not data.walls_sqft:
        area = data.linear_feet * data.wall_height_ft
        return data.model_copy(update={
            "calculated_wall_area_sqft": area,
            "walls_sqft": area,
        })
    return data.model_copy()


def _is_filled(value: Any) -> bool:
    return value is not None and value != ""


def assess_quality(data: ParsedQuoteData) -> ParsedQuoteData:
    """Compute confidence_score, missing_fields and assumptions_made.

    confidence_score is the rounded percentage of EXPECTED_FIELDS that are
    set (False counts as set; None and "" do not).
    """
    filled = sum(1 for name in EXPECTED_FIELDS if _is_filled(getattr(data, name)))
    confidence = round(filled / len(EXPECTED_FIELDS) * 100)

    missing = [label for key, label in CRITICAL_FIELDS if not getattr(data, key)]

    assumptions = []
    if data.calculated_wall_area_sqft:
        assumptions.append(
            f"Calculated wall area: {_format_number(data.calculated_wall_area_sqft)} sqft "
            f"from {_format_number(data.linear_feet or 0)} linear feet × "
            f"{_format_number(data.wall_height_ft or 0)} ft height"
        )

    return data.model_copy(update={
        "confidence_score": confidence,
        "missing_fields": missing,
        "assumptions_made": assumptions,
    })


def generate_clarification_questions(data: ParsedQuoteData) -> List[str]:
    """Questions for the business-critical gaps, in a fixed order."""
    questions = []
    if not data.customer_name:
        questions.append("What is the customer's name?")
    if not data.property_address:
        questions.append("What is the property address?")
    if not data.walls_sqft and not data.linear_feet:
        questions.append("What are the wall measurements (square feet or linear feet)?")
    if not data.labor_cost_per_sqft:
        questions.append("What is your labor rate per square foot?")
    if not data.paint_cost_per_gallon:
        questions.append("What is the cost per gallon of paint?")
    return questions


def _failure_result(error: str, warnings: Optional[List[str]] = None) -> ParsingResult:
    return ParsingResult(
        success=False,
        data=ParsedQuoteData(),
        errors=[error],
        warnings=warnings or [],
        needs_clarification=True,
        clarification_questions=[GENERIC_CLARIFICATION]
    )


# =============================================================================
# Parser
# =============================================================================


class QuoteDataParser:
    """Multi-stage quote extraction pipeline."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        strategy: Optional[ExtractionStrategy] = None,
        llm_service=None
    ):
        """Initialize QuoteDataParser.

        Args:
            settings: Settings instance (default: module settings).
            strategy: Extraction strategy (default: selected from settings).
            llm_service: Optional LLMService shared with other components.
        """
        self.settings = settings or default_settings
        self.strategy = strategy or build_extraction_strategy(self.settings, llm_service=llm_service)

    async def parse(self, raw_text: str) -> ParsingResult:
        """Parse a free-text job description.

        Never raises. Empty input and primary-extraction failures produce
        success=False with the error recorded.

        Args:
            raw_text: Contractor's description of the job.

        Returns:
            ParsingResult with the structured data and quality signals.
        """
        if not raw_text or not raw_text.strip():
            log_parse_failed(EMPTY_INPUT_ERROR, stage="input")
            return _failure_result(EMPTY_INPUT_ERROR)

        warnings: List[str] = []
        text = raw_text.strip()
        if len(text) > self.settings.max_input_chars:
            logger.warning(
                "quote_input_truncated",
                input_length=len(text),
                max_input_chars=self.settings.max_input_chars
            )
            warnings.append(f"Input truncated to {self.settings.max_input_chars} characters")
            text = text[:self.settings.max_input_chars]

        log_parse_start(len(text), self.strategy.is_model_backed)

        # Stage 1: primary extraction
        try:
            extracted = await self.strategy.extract_quote_data(text)
        except ExtractionError as e:
            log_parse_failed(e.message, stage=e.stage)
            return _failure_result(e.message, warnings)
        except Exception as e:
            log_parse_failed(str(e), stage="primary_extraction")
            return _failure_result(str(e) or "Unknown parsing error", warnings)
        log_stage_output("primary_extraction", extracted)

        # Stage 2: validation
        try:
            validated = await self.strategy.validate_quote_data(text, extracted)
        except Exception as e:
            logger.warning("quote_validation_failed", error=str(e))
            validated = extracted
        if not isinstance(validated, dict):
            validated = extracted
        log_stage_output("validation", validated)

        data = self._coerce(validated, extracted)

        # Stage 3: enrichment
        data = enrich_with_calculations(data)
        log_stage_output("enrichment", data.model_dump(exclude_none=True))

        # Stage 4: quality assessment
        data = assess_quality(data)

        warnings.extend(f"Missing: {label}" for label in data.missing_fields)
        if not self.strategy.is_model_backed:
            warnings.append(FALLBACK_WARNING)

        log_parse_complete(data.confidence_score, data.missing_fields, warnings)

        return ParsingResult(
            success=True,
            data=data,
            errors=[],
            warnings=warnings,
            needs_clarification=bool(data.missing_fields),
            clarification_questions=generate_clarification_questions(data)
        )

    def _coerce(self, validated: Dict[str, Any], extracted: Dict[str, Any]) -> ParsedQuoteData:
        """Validate into ParsedQuoteData, falling back to the stage 1 output."""
        for candidate in (validated, extracted):
            try:
                return ParsedQuoteData.model_validate(candidate)
            except ValidationError as e:
                logger.warning("quote_data_coercion_failed", error_count=e.error_count())
        return ParsedQuoteData()

    async def detect_quote_enhancements(self, raw_text: str) -> QuoteEnhancements:
        """Summarize product changes and rate adjustments in a chat message.

        Args:
            raw_text: Contractor's message.

        Returns:
            QuoteEnhancements; has_changes is False when parsing failed.
        """
        result = await self.parse(raw_text)
        if not result.success:
            return QuoteEnhancements()

        data = result.data
        return QuoteEnhancements(
            product_changes=data.product_changes.model_dump(exclude_none=True) if data.product_changes else None,
            rate_adjustments=data.rate_adjustments.model_dump(exclude_none=True) if data.rate_adjustments else None,
            confidence=data.confidence_score
        )
