"""Pricing result models for PaintQuote."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PricingBreakdown(BaseModel):
    """Every intermediate of a quote calculation, for display."""

    wall_area: float = 0.0
    ceiling_area: float = 0.0
    trim_area: float = 0.0
    total_paintable_area: float = 0.0
    spread_rate_sqft_per_gallon: float = 0.0
    paint_cost_per_gallon: float = 0.0
    primer_cost_per_sqft: float = 0.0
    primer_included: bool = False
    labor_percentage: float = Field(default=30.0, description="Labor share of the subtotal, in percent")
    total_materials_cost: float = 0.0
    labor_calculation_method: str = "30% of subtotal"
    markup_percent: float = 0.0
    product_changes: Optional[Dict[str, Any]] = None
    rate_adjustments: Optional[Dict[str, Any]] = None


class PricingResult(BaseModel):
    """Priced estimate produced by the deterministic calculator."""

    paint_gallons_needed: int = 0
    materials_cost: float = 0.0
    primer_cost: float = 0.0
    labor_cost: float = 0.0
    subtotal: float = 0.0
    markup_amount: float = 0.0
    final_quote: float = 0.0
    breakdown: PricingBreakdown = Field(default_factory=PricingBreakdown)
