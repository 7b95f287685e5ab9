"""
Level table.

Ordered collection of commission percentages keyed by level number,
used both for flat "Level N" slots and for referral depth slots.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal

from commission_manager.config.business_constants import (
    DEFAULT_LEVEL_PERCENTAGES,
    LEVEL_NAME_TEMPLATE,
    REFERRAL_LEVEL_NAME_TEMPLATE,
)
from commission_manager.models.enums import LevelScope
from commission_manager.models.level import Level, ReferralLevel
from commission_manager.utils.exceptions import InvalidPercentage
from commission_manager.validators.common import validate_percentage


@dataclass(frozen=True)
class LevelEntry:
    """One level slot."""

    level_order: int
    percentage: Decimal
    name: str
    level_id: int | None = None
    # Seeded bootstrap value, not set by an admin
    is_default: bool = False
    # Person IDs assigned to the level (flat-level mode only)
    roster: tuple[int, ...] = field(default_factory=tuple)


class LevelTable:
    """Ordered levels with unique level_order."""

    def __init__(
        self,
        entries: Iterable[LevelEntry] = (),
        scope: LevelScope = LevelScope.COMMISSION,
    ) -> None:
        """
        Initialize level table.

        Args:
            entries: Level slots (any order)
            scope: COMMISSION or REFERRAL

        Raises:
            ValueError: Duplicate or non-positive level_order
        """
        self.scope = scope
        self._entries: dict[int, LevelEntry] = {}
        for entry in entries:
            if entry.level_order < 1:
                raise ValueError(f"level_order must be >= 1, got {entry.level_order}")
            if entry.level_order in self._entries:
                raise ValueError(f"Duplicate level_order {entry.level_order}")
            self._entries[entry.level_order] = entry

    @classmethod
    def with_defaults(
        cls, scope: LevelScope = LevelScope.COMMISSION
    ) -> "LevelTable":
        """
        Build the default descending schedule (levels 1..5).

        Entries are flagged is_default=True.
        """
        return cls(
            (
                LevelEntry(
                    level_order=order,
                    percentage=percentage,
                    name=level_name(scope, order),
                    is_default=True,
                )
                for order, percentage in enumerate(DEFAULT_LEVEL_PERCENTAGES, start=1)
            ),
            scope=scope,
        )

    @classmethod
    def from_levels(
        cls,
        levels: Sequence[Level],
        rosters: Mapping[int, Sequence[int]] | None = None,
    ) -> "LevelTable":
        """
        Build a commission level table from Level rows.

        Args:
            levels: Level rows of one scope
            rosters: Optional {level_id: [person_id, ...]}
        """
        rosters = rosters or {}
        return cls(
            (
                LevelEntry(
                    level_order=level.level_order,
                    percentage=level.commission_percentage,
                    name=level.name,
                    level_id=level.id,
                    is_default=level.is_default,
                    roster=tuple(rosters.get(level.id, ())),
                )
                for level in levels
            ),
            scope=LevelScope.COMMISSION,
        )

    @classmethod
    def from_referral_levels(
        cls, levels: Sequence[ReferralLevel]
    ) -> "LevelTable":
        """Build a referral level table from ReferralLevel rows."""
        return cls(
            (
                LevelEntry(
                    level_order=level.level,
                    percentage=level.commission_percentage,
                    name=level_name(LevelScope.REFERRAL, level.level),
                    level_id=level.id,
                    is_default=level.is_default,
                )
                for level in levels
            ),
            scope=LevelScope.REFERRAL,
        )

    def __iter__(self):
        """Iterate entries in ascending level_order."""
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, level_order: object) -> bool:
        return level_order in self._entries

    @property
    def entries(self) -> list[LevelEntry]:
        """Entries in ascending level_order."""
        return [self._entries[order] for order in sorted(self._entries)]

    def get(self, level_order: int) -> LevelEntry | None:
        """Get entry by level_order, None if not found."""
        return self._entries.get(level_order)

    def percentage_for(self, level_order: int) -> Decimal | None:
        """
        Get percentage for a level.

        Returns:
            Percentage, or None if the level does not exist
        """
        entry = self._entries.get(level_order)
        return entry.percentage if entry else None

    def update(self, level_order: int, new_percentage: Decimal | int | str) -> LevelEntry:
        """
        Set the percentage of a level.

        Creates the level if it does not exist. Replaying the same value
        leaves the table unchanged. Any update clears is_default.

        Args:
            level_order: Level number (>= 1)
            new_percentage: Percentage in 0..100

        Returns:
            Updated entry

        Raises:
            InvalidPercentage: Percentage outside 0..100
        """
        is_valid, percentage, error = validate_percentage(new_percentage)
        if not is_valid:
            raise InvalidPercentage(
                f"Invalid percentage for level {level_order}: {error}"
            )
        if level_order < 1:
            raise ValueError(f"level_order must be >= 1, got {level_order}")

        current = self._entries.get(level_order)
        if current is None:
            entry = LevelEntry(
                level_order=level_order,
                percentage=percentage,
                name=level_name(self.scope, level_order),
            )
        elif current.percentage == percentage and not current.is_default:
            return current
        else:
            entry = replace(current, percentage=percentage, is_default=False)

        self._entries[level_order] = entry
        return entry

    def has_only_defaults(self) -> bool:
        """True if every entry is a seeded default."""
        return bool(self._entries) and all(
            entry.is_default for entry in self._entries.values()
        )


def level_name(scope: LevelScope, level_order: int) -> str:
    """Default display name for a level slot."""
    if scope == LevelScope.REFERRAL:
        return REFERRAL_LEVEL_NAME_TEMPLATE.format(order=level_order)
    return LEVEL_NAME_TEMPLATE.format(order=level_order)
