"""Unit tests for display formatting."""

from decimal import Decimal

from commission_manager.models.enums import CommissionSource
from commission_manager.services.commission.preview import (
    CommissionLine,
    CommissionPreview,
    LevelResult,
)
from commission_manager.utils.formatters import (
    format_currency,
    format_percentage,
    format_preview,
    to_display_amount,
)


class TestCurrency:
    """Tests for currency formatting."""

    def test_rounds_to_cents_at_display(self):
        assert to_display_amount(Decimal("8333.33333333")) == Decimal("8333.33")

    def test_half_up(self):
        assert to_display_amount(Decimal("0.005")) == Decimal("0.01")

    def test_symbol_prefix(self):
        assert format_currency(Decimal("25000")) == "$25,000.00"

    def test_code_suffix(self):
        assert format_currency(Decimal("-7500"), currency="EUR") == "-7,500.00 EUR"

    def test_negative_symbol(self):
        assert format_currency(Decimal("-15000")) == "-$15,000.00"

    def test_percentage(self):
        assert format_percentage(Decimal("2.5")) == "2.5%"
        assert format_percentage(Decimal("1.25"), decimals=2) == "1.25%"


class TestPreview:
    """Tests for preview rendering."""

    def test_format_preview(self):
        preview = CommissionPreview(
            property_id=7,
            seller_id=1,
            price=Decimal("500000"),
            property_type="residential",
            modes=(CommissionSource.FLAT_LEVEL, CommissionSource.REFERRAL_CHAIN),
            referral_level_offset=0,
            lines=(
                CommissionLine(
                    source=CommissionSource.FLAT_LEVEL,
                    person_id=1,
                    level_order=1,
                    percentage=Decimal("5.0"),
                    amount=Decimal("25000"),
                    sequence=1,
                ),
                CommissionLine(
                    source=CommissionSource.REFERRAL_CHAIN,
                    person_id=2,
                    level_order=1,
                    depth=1,
                    percentage=Decimal("3.0"),
                    amount=Decimal("15000"),
                    sequence=2,
                ),
            ),
            level_results=(
                LevelResult(
                    level_order=1,
                    name="Level 1",
                    percentage=Decimal("5.0"),
                    level_total=Decimal("25000"),
                    people_count=1,
                    per_person=Decimal("25000"),
                ),
                LevelResult(
                    level_order=2,
                    name="Level 2",
                    percentage=Decimal("3.0"),
                    level_total=Decimal("15000"),
                    people_count=0,
                    per_person=Decimal("0"),
                ),
            ),
        )

        text = format_preview(preview)

        assert "Price: $500,000.00" in text
        assert "Level 1 (5.0%): $25,000.00, 1 people x $25,000.00" in text
        assert "Level 2 (3.0%): $15,000.00, nobody assigned" in text
        assert "depth 1: person 2 (3.0%) $15,000.00" in text
        assert text.endswith("Total: $40,000.00")
