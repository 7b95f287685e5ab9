"""
Commission engine.

Pure calculation of who is owed what for a property sale.

Two modes, usable together:
- flat_level: each level's total (price * percentage / 100) is split
  evenly among the people on its roster
- referral_chain: every ancestor at depth d receives
  price * percentage(d + offset) / 100, unsplit

Amounts keep full precision up to the storage scale (8 places);
rounding to currency units happens at display time.
"""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger

from commission_manager.config.business_constants import (
    MONEY_QUANTUM,
    REFERRAL_LEVEL_OFFSET,
)
from commission_manager.config.settings import Settings
from commission_manager.models.enums import CommissionSource, LevelScope
from commission_manager.models.property import Property
from commission_manager.services.commission.level_table import LevelTable
from commission_manager.services.commission.preview import (
    CommissionLine,
    CommissionPreview,
    LevelResult,
    SaleInput,
)
from commission_manager.services.referral.chain_resolver import ReferralChainEntry
from commission_manager.utils.exceptions import (
    InvalidPercentage,
    InvalidPrice,
    MissingPropertyOrPrice,
    MissingSeller,
)
from commission_manager.validators.common import validate_percentage


DEFAULT_COMMISSION_MODES = (CommissionSource.REFERRAL_CHAIN,)


def level_commission(price: Decimal, percentage: Decimal) -> Decimal:
    """
    Commission of a whole level.

    Formula: price * percentage / 100 (exact)

    Example:
        >>> level_commission(Decimal("500000"), Decimal("5.0"))
        Decimal('25000.0')
    """
    return price * percentage / 100


def split_evenly(level_total: Decimal, people_count: int) -> Decimal:
    """
    Per-person share of a level total.

    Returns 0 for an empty roster. The share is rounded to the storage
    scale, so the shares sum to the level total within 1e-8 per person.
    """
    if people_count <= 0:
        return Decimal("0")
    return (level_total / people_count).quantize(
        MONEY_QUANTUM, rounding=ROUND_HALF_UP
    )


def to_money(amount: Decimal) -> Decimal:
    """Round amount to the storage scale."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class CommissionEngine:
    """
    Commission calculator.

    Stateless apart from its policy (active modes and referral level
    offset); calculate() can be called any number of times.
    """

    def __init__(
        self,
        modes: Iterable[CommissionSource | str] = DEFAULT_COMMISSION_MODES,
        referral_level_offset: int = REFERRAL_LEVEL_OFFSET,
    ) -> None:
        """
        Initialize engine.

        Args:
            modes: Active commission modes
            referral_level_offset: Added to chain depth to find the
                                   referral level key
        """
        self.modes = tuple(CommissionSource(mode) for mode in modes)
        if not self.modes:
            raise ValueError("At least one commission mode is required")
        self.referral_level_offset = referral_level_offset

    @classmethod
    def from_settings(cls, settings: Settings) -> "CommissionEngine":
        """Build engine from application settings."""
        return cls(
            modes=settings.get_commission_modes(),
            referral_level_offset=settings.referral_level_offset,
        )

    def referral_level_for_depth(self, depth: int) -> int:
        """Referral level key used for a chain depth."""
        return depth + self.referral_level_offset

    def calculate(
        self,
        sale: SaleInput | Property | None,
        seller_id: int | None,
        levels: LevelTable | None = None,
        referral_chain: Sequence[ReferralChainEntry] = (),
        referral_levels: LevelTable | None = None,
    ) -> CommissionPreview:
        """
        Calculate commissions for a sale without side effects.

        Args:
            sale: Property (or its snapshot) with a price
            seller_id: Person who sold the property
            levels: Flat levels with rosters (flat_level mode)
            referral_chain: Seller's ancestors (referral_chain mode)
            referral_levels: Percentages by referral level

        Returns:
            CommissionPreview with lines in commit order: flat-level
            lines by ascending level then roster order, then referral
            lines by ascending depth

        Raises:
            MissingPropertyOrPrice: No property or no price
            InvalidPrice: Negative price
            MissingSeller: No seller
            InvalidPercentage: A level percentage outside 0..100
        """
        if isinstance(sale, Property):
            sale = SaleInput.from_property(sale)

        if sale is None or sale.price is None:
            raise MissingPropertyOrPrice("Property and price are required")

        price = Decimal(sale.price)
        if price < 0:
            raise InvalidPrice(f"Price must be >= 0, got {price}")

        if seller_id is None:
            raise MissingSeller("A seller is required to calculate commissions")

        lines: list[CommissionLine] = []
        level_results: list[LevelResult] = []

        if CommissionSource.FLAT_LEVEL in self.modes:
            flat_lines, level_results = self._calculate_flat(
                price, levels if levels is not None else LevelTable(), start=1
            )
            lines.extend(flat_lines)

        if CommissionSource.REFERRAL_CHAIN in self.modes:
            lines.extend(
                self._calculate_referral(
                    price,
                    referral_chain,
                    referral_levels
                    if referral_levels is not None
                    else LevelTable(scope=LevelScope.REFERRAL),
                    start=len(lines) + 1,
                )
            )

        preview = CommissionPreview(
            property_id=sale.property_id,
            seller_id=seller_id,
            price=price,
            property_type=sale.property_type,
            modes=self.modes,
            referral_level_offset=self.referral_level_offset,
            lines=tuple(lines),
            level_results=tuple(level_results),
            referral_chain=tuple(referral_chain),
        )

        logger.debug(
            "Commission preview calculated",
            extra={
                "property_id": sale.property_id,
                "seller_id": seller_id,
                "lines": len(lines),
                "total": str(preview.total),
            },
        )
        return preview

    def _calculate_flat(
        self, price: Decimal, levels: LevelTable, start: int
    ) -> tuple[list[CommissionLine], list[LevelResult]]:
        """Split each level total evenly among its roster."""
        lines: list[CommissionLine] = []
        results: list[LevelResult] = []
        sequence = start

        for entry in levels:
            percentage = _checked_percentage(entry.percentage, entry.level_order)
            level_total = to_money(level_commission(price, percentage))
            per_person = split_evenly(level_total, len(entry.roster))

            results.append(
                LevelResult(
                    level_order=entry.level_order,
                    name=entry.name,
                    percentage=percentage,
                    level_total=level_total,
                    people_count=len(entry.roster),
                    per_person=per_person,
                    level_id=entry.level_id,
                )
            )

            # Zero percentage or empty roster: nothing to record
            if percentage == 0 or not entry.roster:
                continue

            for person_id in entry.roster:
                lines.append(
                    CommissionLine(
                        source=CommissionSource.FLAT_LEVEL,
                        person_id=person_id,
                        level_order=entry.level_order,
                        level_id=entry.level_id,
                        percentage=percentage,
                        amount=per_person,
                        sequence=sequence,
                    )
                )
                sequence += 1

        return lines, results

    def _calculate_referral(
        self,
        price: Decimal,
        chain: Sequence[ReferralChainEntry],
        referral_levels: LevelTable,
        start: int,
    ) -> list[CommissionLine]:
        """Pay every ancestor from the referral level of its depth."""
        lines: list[CommissionLine] = []
        sequence = start

        for entry in sorted(chain, key=lambda e: e.depth):
            level_key = self.referral_level_for_depth(entry.depth)
            if level_key < 1:
                continue

            percentage = referral_levels.percentage_for(level_key)
            # No configured level (chain deeper than the table) or 0%
            if percentage is None or percentage == 0:
                continue

            percentage = _checked_percentage(percentage, level_key)
            level_row = referral_levels.get(level_key)

            lines.append(
                CommissionLine(
                    source=CommissionSource.REFERRAL_CHAIN,
                    person_id=entry.person_id,
                    level_order=level_key,
                    level_id=level_row.level_id if level_row else None,
                    depth=entry.depth,
                    percentage=percentage,
                    amount=to_money(level_commission(price, percentage)),
                    sequence=sequence,
                )
            )
            sequence += 1

        return lines


def _checked_percentage(value: Decimal, level_order: int) -> Decimal:
    """Validate a stored percentage before using it."""
    is_valid, percentage, error = validate_percentage(value)
    if not is_valid:
        raise InvalidPercentage(f"Level {level_order}: {error}")
    return percentage
