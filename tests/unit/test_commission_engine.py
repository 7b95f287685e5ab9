"""
Unit tests for the commission engine.

Tests cover:
- Flat-level split (level totals, per-person shares, empty rosters)
- Referral-chain payouts and the level offset
- Both modes together
- Input validation
"""

from decimal import Decimal

import pytest

from commission_manager.models.enums import CommissionSource, LevelScope
from commission_manager.services.commission.engine import (
    CommissionEngine,
    level_commission,
    split_evenly,
)
from commission_manager.services.commission.level_table import (
    LevelEntry,
    LevelTable,
)
from commission_manager.services.commission.preview import SaleInput
from commission_manager.services.referral.chain_resolver import ReferralChainEntry
from commission_manager.utils.exceptions import (
    InvalidPercentage,
    InvalidPrice,
    MissingPropertyOrPrice,
    MissingSeller,
)


SELLER = 1
B, C = 2, 3

FLAT = (CommissionSource.FLAT_LEVEL,)
REFERRAL = (CommissionSource.REFERRAL_CHAIN,)
BOTH = (CommissionSource.FLAT_LEVEL, CommissionSource.REFERRAL_CHAIN)


def flat_levels(*levels):
    """Build a table from (order, percentage, roster) tuples."""
    return LevelTable(
        LevelEntry(
            level_order=order,
            percentage=Decimal(percentage),
            name=f"Level {order}",
            level_id=order * 10,
            roster=tuple(roster),
        )
        for order, percentage, roster in levels
    )


def referral_table(**percentages):
    """Build a referral table from level_<n>=percentage keywords."""
    return LevelTable(
        (
            LevelEntry(
                level_order=int(key.split("_")[1]),
                percentage=Decimal(value),
                name=key,
            )
            for key, value in percentages.items()
        ),
        scope=LevelScope.REFERRAL,
    )


@pytest.fixture
def sale():
    return SaleInput(price=Decimal("500000"), property_type="residential", property_id=7)


@pytest.fixture
def chain():
    return [
        ReferralChainEntry(person_id=B, depth=1),
        ReferralChainEntry(person_id=C, depth=2),
    ]


class TestFormulas:
    """Test the arithmetic helpers."""

    def test_level_commission(self):
        assert level_commission(Decimal("500000"), Decimal("5.0")) == Decimal("25000")

    @pytest.mark.parametrize(
        "price,percentage",
        [
            (Decimal("0"), Decimal("5")),
            (Decimal("123456.78"), Decimal("0")),
            (Decimal("999999999.99"), Decimal("100")),
            (Decimal("1234.56"), Decimal("2.5")),
        ],
    )
    def test_level_commission_exact(self, price, percentage):
        assert level_commission(price, percentage) == price * percentage / 100

    def test_split_empty_roster(self):
        assert split_evenly(Decimal("100"), 0) == Decimal("0")

    def test_split_sums_to_total_within_one_cent(self):
        """Three-way split of 25000 loses less than a cent."""
        share = split_evenly(Decimal("25000"), 3)
        assert abs(share * 3 - Decimal("25000")) < Decimal("0.01")


class TestFlatLevelSplit:
    """Test flat_level mode."""

    def test_single_recipient_level(self, sale):
        """500000 at {1: 5.0, 2: 3.0} with one person on level 1."""
        levels = flat_levels((1, "5.0", [SELLER]), (2, "3.0", []))

        preview = CommissionEngine(modes=FLAT).calculate(sale, SELLER, levels=levels)

        level_1, level_2 = preview.level_results
        assert level_1.level_total == Decimal("25000")
        assert level_1.per_person == Decimal("25000")
        assert level_2.people_count == 0
        assert level_2.distributed == Decimal("0")
        assert len(preview.lines) == 1
        assert preview.total == Decimal("25000")

    def test_roster_split_evenly(self, sale):
        levels = flat_levels((1, "3.0", [SELLER, B, C]))

        preview = CommissionEngine(modes=FLAT).calculate(sale, SELLER, levels=levels)

        assert [line.person_id for line in preview.lines] == [SELLER, B, C]
        assert all(line.amount == Decimal("5000") for line in preview.lines)

    def test_zero_percentage_level_skipped(self, sale):
        levels = flat_levels((1, "0", [SELLER]))

        preview = CommissionEngine(modes=FLAT).calculate(sale, SELLER, levels=levels)

        assert preview.lines == ()
        assert preview.total == Decimal("0")

    def test_zero_price_keeps_zero_rows(self):
        """Price 0 is valid and still yields (zero-amount) lines."""
        levels = flat_levels((1, "5.0", [SELLER]))

        preview = CommissionEngine(modes=FLAT).calculate(
            SaleInput(price=Decimal("0")), SELLER, levels=levels
        )

        assert len(preview.lines) == 1
        assert preview.lines[0].amount == Decimal("0")

    def test_lines_ordered_by_level(self, sale):
        levels = flat_levels((2, "3.0", [C]), (1, "5.0", [B]))

        preview = CommissionEngine(modes=FLAT).calculate(sale, SELLER, levels=levels)

        assert [line.level_order for line in preview.lines] == [1, 2]
        assert [line.sequence for line in preview.lines] == [1, 2]
        assert preview.lines[0].level_id == 10


class TestReferralChain:
    """Test referral_chain mode."""

    def test_chain_payouts(self, sale, chain):
        """B=15000, C=7500, total 22500."""
        preview = CommissionEngine(modes=REFERRAL).calculate(
            sale,
            SELLER,
            referral_chain=chain,
            referral_levels=referral_table(level_1="3.0", level_2="1.5"),
        )

        assert preview.amount_for(B) == Decimal("15000")
        assert preview.amount_for(C) == Decimal("7500")
        assert preview.referral_total == Decimal("22500")
        assert [line.depth for line in preview.referral_lines] == [1, 2]

    def test_chain_deeper_than_table(self, sale, chain):
        """Ancestors without a configured level get nothing."""
        preview = CommissionEngine(modes=REFERRAL).calculate(
            sale,
            SELLER,
            referral_chain=chain,
            referral_levels=referral_table(level_1="3.0"),
        )

        assert [line.person_id for line in preview.lines] == [B]

    def test_offset_shifts_level_key(self, sale, chain):
        """With offset -1 the direct referrer maps to level 0 (unpaid)."""
        preview = CommissionEngine(modes=REFERRAL, referral_level_offset=-1).calculate(
            sale,
            SELLER,
            referral_chain=chain,
            referral_levels=referral_table(level_1="3.0", level_2="1.5"),
        )

        assert len(preview.lines) == 1
        assert preview.lines[0].person_id == C
        assert preview.lines[0].level_order == 1
        assert preview.lines[0].amount == Decimal("15000")

    def test_no_chain(self, sale):
        preview = CommissionEngine(modes=REFERRAL).calculate(
            sale, SELLER, referral_levels=referral_table(level_1="3.0")
        )
        assert preview.total == Decimal("0")


class TestBothModes:
    """Flat and referral commissions add up."""

    def test_modes_are_additive(self, sale, chain):
        preview = CommissionEngine(modes=BOTH).calculate(
            sale,
            SELLER,
            levels=flat_levels((1, "5.0", [SELLER]), (2, "3.0", [])),
            referral_chain=chain,
            referral_levels=referral_table(level_1="3.0", level_2="1.5"),
        )

        assert preview.flat_total == Decimal("25000")
        assert preview.referral_total == Decimal("22500")
        assert preview.total == Decimal("47500")

    def test_flat_lines_come_first(self, sale, chain):
        preview = CommissionEngine(modes=BOTH).calculate(
            sale,
            SELLER,
            levels=flat_levels((1, "5.0", [SELLER])),
            referral_chain=chain,
            referral_levels=referral_table(level_1="3.0", level_2="1.5"),
        )

        assert [line.source for line in preview.lines] == [
            CommissionSource.FLAT_LEVEL,
            CommissionSource.REFERRAL_CHAIN,
            CommissionSource.REFERRAL_CHAIN,
        ]
        assert [line.sequence for line in preview.lines] == [1, 2, 3]

    def test_calculate_is_repeatable(self, sale, chain):
        engine = CommissionEngine(modes=BOTH)
        kwargs = dict(
            levels=flat_levels((1, "5.0", [SELLER])),
            referral_chain=chain,
            referral_levels=referral_table(level_1="3.0"),
        )

        assert engine.calculate(sale, SELLER, **kwargs) == engine.calculate(
            sale, SELLER, **kwargs
        )


class TestValidation:
    """Test calculation input errors."""

    def test_missing_seller(self, sale):
        with pytest.raises(MissingSeller):
            CommissionEngine().calculate(sale, None)

    def test_missing_sale(self):
        with pytest.raises(MissingPropertyOrPrice):
            CommissionEngine().calculate(None, SELLER)

    def test_missing_price(self):
        with pytest.raises(MissingPropertyOrPrice):
            CommissionEngine().calculate(SaleInput(price=None), SELLER)

    def test_negative_price(self):
        with pytest.raises(InvalidPrice):
            CommissionEngine().calculate(SaleInput(price=Decimal("-1")), SELLER)

    def test_stored_percentage_out_of_range(self, sale):
        levels = flat_levels((1, "150", [SELLER]))

        with pytest.raises(InvalidPercentage):
            CommissionEngine(modes=FLAT).calculate(sale, SELLER, levels=levels)

    def test_no_modes(self):
        with pytest.raises(ValueError):
            CommissionEngine(modes=())

    def test_modes_from_strings(self):
        engine = CommissionEngine(modes=["flat_level"])
        assert engine.modes == (CommissionSource.FLAT_LEVEL,)
