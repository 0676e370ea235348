"""Parsed quote data models for PaintQuote.

Pydantic models for the structured output of the quote parsing pipeline.
Model output is loosely typed, so validators coerce nulls, currency strings
and empty nested structures into the documented shapes.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def coerce_number(value: Any) -> Optional[float]:
    """Coerce a loosely-typed numeric value ("$1.50", "1,200 sqft") to float.

    Returns None for null, booleans and values with no number in them.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if match:
            return float(match.group(0))
    return None


class ProjectType(str, Enum):
    """Type of painting project."""

    INTERIOR = "interior"
    EXTERIOR = "exterior"
    BOTH = "both"


class _LenientModel(BaseModel):
    """Base model that drops nested structures with no stated values."""

    @classmethod
    def is_empty_payload(cls, value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, dict):
            return all(cls.is_empty_payload(v) for v in value.values())
        if isinstance(value, BaseModel):
            return cls.is_empty_payload(value.model_dump())
        return value == ""

    @classmethod
    def nested_or_none(cls, value: Any) -> Any:
        """Keep a nested payload only when it is a non-empty object."""
        if not isinstance(value, (dict, BaseModel)) or cls.is_empty_payload(value):
            return None
        return value


class SurfaceProductChange(_LenientModel):
    """A requested paint product change for one surface."""

    brand: Optional[str] = Field(default=None, description="Paint brand (e.g. Benjamin Moore)")
    product: Optional[str] = Field(default=None, description="Product line (e.g. ProClassic)")
    cost: Optional[float] = Field(default=None, description="Cost per gallon")

    @field_validator("cost", mode="before")
    @classmethod
    def _coerce_cost(cls, v):
        return coerce_number(v)


class ProductChanges(_LenientModel):
    """Mid-conversation product change requests keyed by surface."""

    walls: Optional[SurfaceProductChange] = None
    ceilings: Optional[SurfaceProductChange] = None
    trim: Optional[SurfaceProductChange] = None

    @field_validator("walls", "ceilings", "trim", mode="before")
    @classmethod
    def _drop_empty(cls, v):
        return cls.nested_or_none(v)


class RateAdjustments(_LenientModel):
    """Mid-conversation rate overrides per surface or unit."""

    wall_rate: Optional[float] = None
    ceiling_rate: Optional[float] = None
    trim_rate: Optional[float] = None
    door_rate: Optional[float] = None
    window_rate: Optional[float] = None
    priming_rate: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_rates(cls, v):
        return coerce_number(v)


# Numeric fields that model output may return as strings
NUMERIC_FIELDS = (
    "linear_feet",
    "wall_height_ft",
    "walls_sqft",
    "ceilings_sqft",
    "trim_sqft",
    "spread_rate_sqft_per_gallon",
    "paint_cost_per_gallon",
    "primer_cost_per_sqft",
    "wall_labor_rate",
    "ceiling_labor_rate",
    "labor_cost_per_sqft",
    "markup_percent",
    "calculated_wall_area_sqft",
)

COUNT_FIELDS = ("doors_count", "windows_count")

SCOPE_FLAGS = (
    "ceiling_included",
    "doors_included",
    "trim_included",
    "windows_included",
    "primer_included",
)


class ParsedQuoteData(BaseModel):
    """Structured painting quote extracted from free text.

    Customer identity fields are empty strings when unknown (never None).
    Metadata fields (confidence_score, missing_fields, assumptions_made,
    project_scope_notes) are derived by the pipeline.
    """

    # Customer information
    customer_name: str = Field(default="", description="Customer name")
    property_address: str = Field(default="", description="Property address")

    # Project scope
    ceiling_included: bool = False
    doors_included: bool = False
    trim_included: bool = False
    windows_included: bool = False
    primer_included: bool = False

    # Measurements
    linear_feet: Optional[float] = None
    wall_height_ft: Optional[float] = None
    walls_sqft: Optional[float] = None
    ceilings_sqft: Optional[float] = None
    trim_sqft: Optional[float] = None
    doors_count: Optional[int] = None
    windows_count: Optional[int] = None

    # Paint specifications
    paint_brand: Optional[str] = None
    paint_product: Optional[str] = None
    paint_sheen: Optional[str] = None
    spread_rate_sqft_per_gallon: Optional[float] = None
    paint_cost_per_gallon: Optional[float] = None
    primer_cost_per_sqft: Optional[float] = None

    # Pricing
    wall_labor_rate: Optional[float] = Field(default=None, description="Wall painting rate per sqft")
    ceiling_labor_rate: Optional[float] = Field(default=None, description="Ceiling painting rate per sqft")
    labor_cost_per_sqft: Optional[float] = Field(default=None, description="Legacy combined labor rate")
    markup_percent: Optional[float] = None

    # Change requests
    product_changes: Optional[ProductChanges] = None
    rate_adjustments: Optional[RateAdjustments] = None

    # Calculated fields
    calculated_wall_area_sqft: Optional[float] = None

    # Metadata
    project_type: ProjectType = ProjectType.INTERIOR
    project_scope_notes: str = ""
    confidence_score: int = Field(default=0, ge=0, le=100)
    missing_fields: List[str] = Field(default_factory=list)
    assumptions_made: List[str] = Field(default_factory=list)

    class Config:
        use_enum_values = True

    @field_validator("customer_name", "property_address", "project_scope_notes", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator(*SCOPE_FLAGS, mode="before")
    @classmethod
    def _coerce_flag(cls, v):
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in ("true", "yes", "y", "1", "included")
        return bool(v)

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_numeric(cls, v):
        return coerce_number(v)

    @field_validator(*COUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_count(cls, v):
        number = coerce_number(v)
        return int(number) if number is not None else None

    @field_validator("paint_brand", "paint_product", "paint_sheen", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("project_type", mode="before")
    @classmethod
    def _coerce_project_type(cls, v):
        if isinstance(v, ProjectType):
            return v
        text = str(v or "").strip().lower()
        if text in {p.value for p in ProjectType}:
            return text
        return ProjectType.INTERIOR.value

    @field_validator("product_changes", "rate_adjustments", mode="before")
    @classmethod
    def _drop_empty_changes(cls, v):
        return _LenientModel.nested_or_none(v)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _coerce_confidence(cls, v):
        number = coerce_number(v)
        if number is None:
            return 0
        return int(max(0, min(100, round(number))))

    @field_validator("missing_fields", "assumptions_made", mode="before")
    @classmethod
    def _coerce_string_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        return [str(item) for item in v if item]


class ParsingResult(BaseModel):
    """Result of one run of the quote parsing pipeline."""

    success: bool
    data: ParsedQuoteData = Field(default_factory=ParsedQuoteData)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    needs_clarification: bool = False
    clarification_questions: List[str] = Field(default_factory=list)


class QuoteEnhancements(BaseModel):
    """Product/rate change summary used by chat integrations."""

    product_changes: Optional[Dict[str, Any]] = None
    rate_adjustments: Optional[Dict[str, Any]] = None
    has_changes: bool = False
    confidence: int = 0

    @model_validator(mode="after")
    def _derive_has_changes(self):
        if self.product_changes or self.rate_adjustments:
            self.has_changes = True
        return self
