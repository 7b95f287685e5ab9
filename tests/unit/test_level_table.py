"""Unit tests for LevelTable."""

from decimal import Decimal

import pytest

from commission_manager.models.enums import LevelScope
from commission_manager.services.commission.level_table import (
    LevelEntry,
    LevelTable,
)
from commission_manager.utils.exceptions import InvalidPercentage


@pytest.fixture
def table():
    """Table with levels 1 (5.0) and 2 (3.0)."""
    return LevelTable(
        [
            LevelEntry(level_order=2, percentage=Decimal("3.0"), name="Level 2"),
            LevelEntry(level_order=1, percentage=Decimal("5.0"), name="Level 1"),
        ]
    )


class TestLevelTable:
    """Test lookups and ordering."""

    def test_entries_sorted_by_order(self, table):
        assert [entry.level_order for entry in table] == [1, 2]

    def test_percentage_for(self, table):
        assert table.percentage_for(1) == Decimal("5.0")

    def test_percentage_for_missing_level(self, table):
        """Unknown level returns None."""
        assert table.percentage_for(7) is None

    def test_duplicate_order_rejected(self):
        with pytest.raises(ValueError):
            LevelTable(
                [
                    LevelEntry(level_order=1, percentage=Decimal("1"), name="a"),
                    LevelEntry(level_order=1, percentage=Decimal("2"), name="b"),
                ]
            )

    def test_empty_table_is_falsy_but_usable(self):
        table = LevelTable()
        assert len(table) == 0
        assert table.percentage_for(1) is None


class TestLevelTableUpdate:
    """Test update()."""

    def test_update_changes_percentage(self, table):
        entry = table.update(1, "4.5")
        assert entry.percentage == Decimal("4.5")
        assert table.percentage_for(1) == Decimal("4.5")

    def test_update_out_of_range_leaves_value(self, table):
        """Percentage 150 is rejected and the old value stays."""
        with pytest.raises(InvalidPercentage):
            table.update(1, 150)

        assert table.percentage_for(1) == Decimal("5.0")

    def test_update_negative_rejected(self, table):
        with pytest.raises(InvalidPercentage):
            table.update(2, "-1")

    def test_update_is_idempotent(self, table):
        """Replaying the same value returns the same entry."""
        first = table.update(1, "4.5")
        second = table.update(1, "4.5")
        assert first is second

    def test_update_creates_missing_level(self, table):
        entry = table.update(3, "2")
        assert entry.name == "Level 3"
        assert len(table) == 3

    @pytest.mark.parametrize("value", ["0", "100", Decimal("0.5")])
    def test_bounds_inclusive(self, table, value):
        assert table.update(1, value).percentage == Decimal(value)


class TestDefaults:
    """Test default seeding."""

    def test_default_schedule(self):
        table = LevelTable.with_defaults()

        assert [entry.percentage for entry in table] == [
            Decimal("5.0"),
            Decimal("3.0"),
            Decimal("2.0"),
            Decimal("1.5"),
            Decimal("1.0"),
        ]
        assert table.has_only_defaults()

    def test_referral_default_names(self):
        table = LevelTable.with_defaults(LevelScope.REFERRAL)
        assert table.get(1).name == "Referral Level 1"

    def test_update_clears_default_flag(self):
        """Setting a default back to its own value marks it admin-set."""
        table = LevelTable.with_defaults()

        entry = table.update(1, "5.0")

        assert entry.is_default is False
        assert not table.has_only_defaults()
