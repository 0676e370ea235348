"""Contractor context models for PaintQuote.

A read-mostly snapshot of one contractor's pricing defaults, paint catalog
and recent business history, assembled by the context loader.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from paintquote.models.quote_data import coerce_number


# Hard-coded fallbacks so every numeric setting is always populated
DEFAULT_CONTRACTOR_SETTINGS: Dict[str, Any] = {
    "default_walls_rate": 25.0,
    "default_ceilings_rate": 22.0,
    "default_trim_rate": 35.0,
    "default_walls_paint_cost": 45.0,
    "default_ceilings_paint_cost": 42.0,
    "default_trim_paint_cost": 55.0,
    "default_labor_percentage": 30.0,
    "default_paint_coverage": 350.0,
    "default_sundries_percentage": 8.0,
    "tax_rate": 8.5,
    "tax_on_materials_only": True,
    "tax_label": "Sales Tax",
    "overhead_percentage": 15.0,
    "default_markup_percentage": 20.0,
    "ceiling_height": 9.0,
    "paint_multiplier": 2.0,
    "doors_per_gallon": 8.0,
    "windows_per_gallon": 12.0,
}

DEFAULT_COMPANY_NAME = "Your Company"
DEFAULT_CONTACT_NAME = "there"
DEFAULT_BUSINESS_TYPE = "painting contractor"


class ContractorSettings(BaseModel):
    """Pricing defaults for one contractor. No numeric field is ever None."""

    default_walls_rate: float = DEFAULT_CONTRACTOR_SETTINGS["default_walls_rate"]
    default_ceilings_rate: float = DEFAULT_CONTRACTOR_SETTINGS["default_ceilings_rate"]
    default_trim_rate: float = DEFAULT_CONTRACTOR_SETTINGS["default_trim_rate"]
    default_walls_paint_cost: float = DEFAULT_CONTRACTOR_SETTINGS["default_walls_paint_cost"]
    default_ceilings_paint_cost: float = DEFAULT_CONTRACTOR_SETTINGS["default_ceilings_paint_cost"]
    default_trim_paint_cost: float = DEFAULT_CONTRACTOR_SETTINGS["default_trim_paint_cost"]
    default_labor_percentage: float = DEFAULT_CONTRACTOR_SETTINGS["default_labor_percentage"]
    default_paint_coverage: float = DEFAULT_CONTRACTOR_SETTINGS["default_paint_coverage"]
    default_sundries_percentage: float = DEFAULT_CONTRACTOR_SETTINGS["default_sundries_percentage"]
    tax_rate: float = DEFAULT_CONTRACTOR_SETTINGS["tax_rate"]
    tax_on_materials_only: bool = DEFAULT_CONTRACTOR_SETTINGS["tax_on_materials_only"]
    tax_label: str = DEFAULT_CONTRACTOR_SETTINGS["tax_label"]
    overhead_percentage: float = DEFAULT_CONTRACTOR_SETTINGS["overhead_percentage"]
    default_markup_percentage: float = DEFAULT_CONTRACTOR_SETTINGS["default_markup_percentage"]
    ceiling_height: float = DEFAULT_CONTRACTOR_SETTINGS["ceiling_height"]
    paint_multiplier: float = DEFAULT_CONTRACTOR_SETTINGS["paint_multiplier"]
    doors_per_gallon: float = DEFAULT_CONTRACTOR_SETTINGS["doors_per_gallon"]
    windows_per_gallon: float = DEFAULT_CONTRACTOR_SETTINGS["windows_per_gallon"]

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> "ContractorSettings":
        """Build settings from a partial store payload, filling every gap.

        Null, missing, zero and non-numeric values fall back to the defaults.

        Args:
            raw: Settings payload from the data source (may be None/partial).

        Returns:
            Fully populated ContractorSettings.
        """
        raw = raw or {}
        values: Dict[str, Any] = {}
        for key, default in DEFAULT_CONTRACTOR_SETTINGS.items():
            value = raw.get(key)
            if isinstance(default, bool):
                values[key] = default if value is None else bool(value)
            elif isinstance(default, str):
                values[key] = str(value) if value else default
            else:
                number = coerce_number(value)
                values[key] = number if number else default
        return cls(**values)


class PaintProduct(BaseModel):
    """A paint catalog entry. List order is display order."""

    id: Optional[str] = None
    project_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("projectType", "project_type"),
    )
    product_category: str = Field(
        default="wall_paint",
        validation_alias=AliasChoices("productCategory", "product_category", "category"),
    )
    supplier: str = Field(
        default="",
        validation_alias=AliasChoices("supplier", "brand_name", "brand"),
    )
    product_name: str = Field(
        default="",
        validation_alias=AliasChoices("productName", "product_name", "product"),
    )
    product_line: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("productLine", "product_line"),
    )
    cost_per_gallon: float = Field(
        default=0.0,
        validation_alias=AliasChoices("costPerGallon", "cost_per_gallon", "cost"),
    )
    display_order: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("displayOrder", "display_order"),
    )
    sheen: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return None if v is None else str(v)

    @field_validator("product_category", "supplier", "product_name", mode="before")
    @classmethod
    def _none_to_default(cls, v, info):
        if v is None:
            return "wall_paint" if info.field_name == "product_category" else ""
        return v

    @field_validator("cost_per_gallon", mode="before")
    @classmethod
    def _coerce_cost(cls, v):
        return coerce_number(v) or 0.0

    @property
    def display_name(self) -> str:
        """Supplier and product name, e.g. 'Sherwin Williams ProClassic'."""
        return f"{self.supplier} {self.product_name}".strip()


class RecentQuoteSummary(BaseModel):
    """Lightweight summary of a recent quote, used as conversational context."""

    customer_name: str = ""
    address: str = ""
    amount: float = 0.0
    status: str = ""
    days_ago: int = 0
    project_type: str = ""


class BusinessMetrics(BaseModel):
    """Aggregates over the last 30 days of quotes, computed once at load time."""

    average_job_size: float = 0.0
    win_rate: float = 0.0
    total_quotes_this_month: int = 0
    revenue_this_month: float = 0.0
    preferred_margin: float = DEFAULT_CONTRACTOR_SETTINGS["default_markup_percentage"]


class ContractorContext(BaseModel):
    """Snapshot of one contractor, created per conversation/session."""

    company_id: str = Field(alias="companyId")
    company_name: str = Field(default=DEFAULT_COMPANY_NAME, alias="companyName")
    contact_name: str = Field(default=DEFAULT_CONTACT_NAME, alias="contactName")
    business_type: str = Field(default=DEFAULT_BUSINESS_TYPE, alias="businessType")
    settings: ContractorSettings = Field(default_factory=ContractorSettings)
    paint_products: List[PaintProduct] = Field(default_factory=list, alias="paintProducts")
    recent_quotes: List[RecentQuoteSummary] = Field(default_factory=list, alias="recentQuotes")
    metrics: BusinessMetrics = Field(default_factory=BusinessMetrics)

    class Config:
        populate_by_name = True

    @classmethod
    def default(cls, company_id: str) -> "ContractorContext":
        """Minimal well-formed context used when nothing could be loaded."""
        return cls(company_id=company_id)

    def products_by_category(self) -> Dict[str, List[PaintProduct]]:
        """Group paint products by category, preserving display order."""
        grouped: Dict[str, List[PaintProduct]] = {}
        for product in self.paint_products:
            grouped.setdefault(product.product_category, []).append(product)
        return grouped

    def find_paint_product(self, name: str) -> Optional[PaintProduct]:
        """Fuzzy-match a catalog entry by product name or supplier.

        Case-insensitive substring match; the first match in display order wins.
        """
        needle = (name or "").strip().lower()
        if not needle:
            return None
        for product in self.paint_products:
            if needle in product.product_name.lower() or needle in product.supplier.lower():
                return product
        # "Sherwin Williams ProClassic" style names: match on the full display name
        for product in self.paint_products:
            display = product.display_name.lower()
            if display and (display in needle or needle in display):
                return product
        return None
