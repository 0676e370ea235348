"""Deterministic Quote Calculator.

Prices a ParsedQuoteData with no model calls and no I/O. Labor is a fixed
share of the pre-markup subtotal, so the subtotal is solved from materials:

    subtotal = materials_total / (1 - LABOR_SHARE)
    labor    = subtotal * LABOR_SHARE

Per-sqft labor rates extracted by the parser are informational and are not
inputs to this calculation.
"""

import math
from typing import Any, Dict, Optional, Union

import structlog

from paintquote.models.pricing import PricingBreakdown, PricingResult
from paintquote.models.quote_data import ParsedQuoteData

logger = structlog.get_logger()

DEFAULT_SPREAD_RATE = 350.0
DEFAULT_PAINT_COST_PER_GALLON = 50.0
DEFAULT_PRIMER_COST_PER_SQFT = 0.45
LABOR_PERCENTAGE = 30.0
LABOR_SHARE = LABOR_PERCENTAGE / 100
LABOR_METHOD_LABEL = "30% of subtotal"


def _as_quote_data(data: Union[ParsedQuoteData, Dict[str, Any]]) -> ParsedQuoteData:
    if isinstance(data, ParsedQuoteData):
        return data
    return ParsedQuoteData.model_validate(data or {})


def _dump(model) -> Optional[Dict[str, Any]]:
    return model.model_dump() if model is not None else None


class QuoteCalculator:
    """Pure pricing over structured quote data."""

    def price(self, data: Union[ParsedQuoteData, Dict[str, Any]]) -> PricingResult:
        """Price a quote.

        Args:
            data: ParsedQuoteData or a plain dict with the same field names
                (e.g. a conversation accumulator; unknown keys are ignored).

        Returns:
            PricingResult with every intermediate in the breakdown.
        """
        quote = _as_quote_data(data)

        wall_area = quote.walls_sqft or quote.calculated_wall_area_sqft or 0.0
        if not wall_area and quote.linear_feet and quote.wall_height_ft:
            wall_area = quote.linear_feet * quote.wall_height_ft
        ceiling_area = (quote.ceilings_sqft or 0.0) if quote.ceiling_included else 0.0
        trim_area = (quote.trim_sqft or 0.0) if quote.trim_included else 0.0
        total_area = wall_area + ceiling_area + trim_area

        spread_rate = quote.spread_rate_sqft_per_gallon or DEFAULT_SPREAD_RATE
        paint_cost = quote.paint_cost_per_gallon or DEFAULT_PAINT_COST_PER_GALLON
        primer_rate = quote.primer_cost_per_sqft or DEFAULT_PRIMER_COST_PER_SQFT
        markup_percent = quote.markup_percent or 0.0

        gallons = math.ceil(total_area / spread_rate) if total_area > 0 else 0
        materials_cost = gallons * paint_cost
        primer_cost = total_area * primer_rate if quote.primer_included else 0.0
        total_materials = materials_cost + primer_cost

        subtotal = total_materials / (1 - LABOR_SHARE)
        labor_cost = subtotal * LABOR_SHARE
        markup_amount = subtotal * (markup_percent / 100)
        final_quote = subtotal + markup_amount

        logger.debug(
            "quote_priced",
            total_area=total_area,
            gallons=gallons,
            final_quote=round(final_quote, 2)
        )

        return PricingResult(
            paint_gallons_needed=gallons,
            materials_cost=materials_cost,
            primer_cost=primer_cost,
            labor_cost=labor_cost,
            subtotal=subtotal,
            markup_amount=markup_amount,
            final_quote=final_quote,
            breakdown=PricingBreakdown(
                wall_area=wall_area,
                ceiling_area=ceiling_area,
                trim_area=trim_area,
                total_paintable_area=total_area,
                spread_rate_sqft_per_gallon=spread_rate,
                paint_cost_per_gallon=paint_cost,
                primer_cost_per_sqft=primer_rate,
                primer_included=quote.primer_included,
                labor_percentage=LABOR_PERCENTAGE,
                total_materials_cost=total_materials,
                labor_calculation_method=LABOR_METHOD_LABEL,
                markup_percent=markup_percent,
                product_changes=_dump(quote.product_changes),
                rate_adjustments=_dump(quote.rate_adjustments)
            )
        )


def calculate_quote(data: Union[ParsedQuoteData, Dict[str, Any]]) -> PricingResult:
    """Price a quote with a default QuoteCalculator."""
    return QuoteCalculator().price(data)
