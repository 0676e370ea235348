"""Unit tests for the deterministic quote calculator."""

import pytest

from paintquote.models.quote_data import ParsedQuoteData
from paintquote.services.quote_calculator import (
    DEFAULT_PAINT_COST_PER_GALLON,
    DEFAULT_PRIMER_COST_PER_SQFT,
    DEFAULT_SPREAD_RATE,
    LABOR_METHOD_LABEL,
    QuoteCalculator,
    calculate_quote,
)


@pytest.fixture
def calculator():
    return QuoteCalculator()


class TestQuoteCalculator:
    """Tests for QuoteCalculator.price."""

    def test_linear_feet_job(self, calculator):
        data = ParsedQuoteData(
            customer_name="Cici",
            linear_feet=500,
            wall_height_ft=9,
            walls_sqft=4500,
            paint_cost_per_gallon=50,
            spread_rate_sqft_per_gallon=350,
            markup_percent=20,
        )

        result = calculator.price(data)

        assert result.paint_gallons_needed == 13
        assert result.materials_cost == 650
        assert result.primer_cost == 0
        assert result.subtotal == pytest.approx(928.5714, rel=1e-4)
        assert result.labor_cost == pytest.approx(278.5714, rel=1e-4)
        assert result.markup_amount == pytest.approx(185.7143, rel=1e-4)
        assert result.final_quote == pytest.approx(1114.2857, rel=1e-4)

    def test_ceiling_area_counts_when_included(self, calculator):
        data = ParsedQuoteData(
            walls_sqft=1200,
            ceilings_sqft=800,
            ceiling_included=True,
            paint_cost_per_gallon=45,
            markup_percent=15,
        )

        result = calculator.price(data)

        assert result.breakdown.total_paintable_area == 2000
        assert result.paint_gallons_needed == 6
        assert result.materials_cost == 270
        assert result.final_quote == pytest.approx(443.5714, rel=1e-4)

    def test_excluded_surfaces_are_ignored(self, calculator):
        data = ParsedQuoteData(
            walls_sqft=1200,
            ceilings_sqft=800,
            trim_sqft=300,
            ceiling_included=False,
            trim_included=False,
        )

        result = calculator.price(data)

        assert result.breakdown.ceiling_area == 0
        assert result.breakdown.trim_area == 0
        assert result.breakdown.total_paintable_area == 1200

    def test_primer_cost(self, calculator):
        data = ParsedQuoteData(walls_sqft=1000, primer_included=True, primer_cost_per_sqft=0.5)

        result = calculator.price(data)

        assert result.paint_gallons_needed == 3
        assert result.materials_cost == 150
        assert result.primer_cost == 500
        assert result.breakdown.total_materials_cost == 650

    def test_defaults_applied(self, calculator):
        result = calculator.price(ParsedQuoteData(walls_sqft=700, primer_included=True))

        breakdown = result.breakdown
        assert breakdown.spread_rate_sqft_per_gallon == DEFAULT_SPREAD_RATE
        assert breakdown.paint_cost_per_gallon == DEFAULT_PAINT_COST_PER_GALLON
        assert breakdown.primer_cost_per_sqft == DEFAULT_PRIMER_COST_PER_SQFT
        assert breakdown.markup_percent == 0
        assert result.paint_gallons_needed == 2
        assert result.primer_cost == pytest.approx(315.0)
        assert result.markup_amount == 0
        assert result.final_quote == result.subtotal

    def test_wall_area_from_linear_feet_when_not_enriched(self, calculator):
        result = calculator.price(ParsedQuoteData(linear_feet=100, wall_height_ft=8))

        assert result.breakdown.wall_area == 800

    def test_calculated_wall_area_used_as_fallback(self, calculator):
        result = calculator.price(ParsedQuoteData(calculated_wall_area_sqft=450))

        assert result.breakdown.wall_area == 450

    def test_zero_area_prices_to_zero(self, calculator):
        result = calculator.price(ParsedQuoteData())

        assert result.paint_gallons_needed == 0
        assert result.materials_cost == 0
        assert result.labor_cost == 0
        assert result.final_quote == 0

    @pytest.mark.parametrize("data", [
        ParsedQuoteData(walls_sqft=4500, paint_cost_per_gallon=50, markup_percent=20),
        ParsedQuoteData(walls_sqft=1000, ceilings_sqft=400, ceiling_included=True, primer_included=True),
        ParsedQuoteData(walls_sqft=2000, trim_sqft=150, trim_included=True, markup_percent=25),
    ])
    def test_pricing_invariants(self, calculator, data):
        result = calculator.price(data)

        assert result.subtotal == pytest.approx(result.breakdown.total_materials_cost + result.labor_cost)
        assert result.labor_cost == pytest.approx(0.30 * result.subtotal)
        assert result.final_quote == pytest.approx(result.subtotal + result.markup_amount)
        assert result.paint_gallons_needed * result.breakdown.spread_rate_sqft_per_gallon >= (
            result.breakdown.total_paintable_area
        )
        assert result.breakdown.labor_percentage == 30.0
        assert result.breakdown.labor_calculation_method == LABOR_METHOD_LABEL

    def test_deterministic(self, calculator):
        data = ParsedQuoteData(walls_sqft=1800, primer_included=True, primer_cost_per_sqft=0.7, markup_percent=15)

        assert calculator.price(data) == calculator.price(data)

    def test_change_requests_pass_through(self, calculator):
        data = ParsedQuoteData.model_validate({
            "walls_sqft": 1000,
            "product_changes": {"walls": {"brand": "Benjamin Moore"}},
            "rate_adjustments": {"door_rate": 175},
        })

        result = calculator.price(data)

        assert result.breakdown.product_changes["walls"]["brand"] == "Benjamin Moore"
        assert result.breakdown.rate_adjustments["door_rate"] == 175
        # Rate adjustments are informational
        assert result.final_quote == calculator.price(ParsedQuoteData(walls_sqft=1000)).final_quote


class TestCalculateQuote:
    """Tests for the calculate_quote helper."""

    def test_accepts_accumulator_dict(self):
        accumulated = {
            "customer_name": "John",
            "property_address": "123 Main St",
            "walls_sqft": 1200,
            "paint_cost_per_gallon": 45,
            "markup_percent": 15,
            "phone": "555-0100",
            "selected_paint": {"brand": "Behr", "product": "Premium Plus", "cost": 38},
        }

        result = calculate_quote(accumulated)

        assert result.paint_gallons_needed == 4
        assert result.materials_cost == 180

    def test_empty_dict(self):
        assert calculate_quote({}).final_quote == 0

    @pytest.mark.parametrize("changes", [
        {"rate_adjustments": "doors $175"},
        {"rate_adjustments": [175]},
        {"product_changes": [{"walls": {"brand": "Benjamin Moore"}}]},
    ])
    def test_non_object_change_requests_are_dropped(self, changes):
        """Test malformed change requests in an accumulator do not break pricing."""
        result = calculate_quote({"walls_sqft": 1000, **changes})

        assert result.final_quote == calculate_quote({"walls_sqft": 1000}).final_quote
        assert result.breakdown.product_changes is None
        assert result.breakdown.rate_adjustments is None

    def test_non_object_surface_change_is_dropped(self):
        result = calculate_quote({
            "walls_sqft": 1000,
            "product_changes": {"walls": "Benjamin Moore", "trim": {"brand": "Behr"}},
        })

        assert result.breakdown.product_changes["walls"] is None
        assert result.breakdown.product_changes["trim"]["brand"] == "Behr"
