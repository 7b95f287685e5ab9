"""
Commission preview types.

Concrete result objects produced by CommissionEngine.calculate and
persisted unchanged by CommissionLedger.commit.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from commission_manager.models.enums import CommissionSource
from commission_manager.models.property import Property
from commission_manager.services.referral.chain_resolver import ReferralChainEntry


@dataclass(frozen=True)
class SaleInput:
    """Snapshot of the property a commission is calculated for."""

    price: Decimal | None
    property_type: str | None = None
    property_id: int | None = None

    @classmethod
    def from_property(cls, prop: Property) -> "SaleInput":
        """Build sale input from a Property row."""
        property_type = prop.property_type
        return cls(
            price=prop.price,
            property_type=getattr(property_type, "value", property_type),
            property_id=prop.id,
        )


@dataclass(frozen=True)
class CommissionLine:
    """
    One recipient payout.

    Flat-level lines carry level_order/level_id, referral lines carry
    depth and the referral level key they were paid from (level_order).
    """

    source: CommissionSource
    person_id: int
    level_order: int
    percentage: Decimal
    amount: Decimal
    sequence: int
    level_id: int | None = None
    depth: int | None = None


@dataclass(frozen=True)
class LevelResult:
    """Flat-level breakdown of one level."""

    level_order: int
    name: str
    percentage: Decimal
    level_total: Decimal
    people_count: int
    per_person: Decimal
    level_id: int | None = None

    @property
    def distributed(self) -> Decimal:
        """Amount actually paid out (0 for an empty roster)."""
        return self.per_person * self.people_count


@dataclass(frozen=True)
class CommissionPreview:
    """Complete, consistent result of one calculation."""

    property_id: int | None
    seller_id: int
    price: Decimal
    property_type: str | None
    modes: tuple[CommissionSource, ...]
    referral_level_offset: int
    lines: tuple[CommissionLine, ...] = field(default_factory=tuple)
    level_results: tuple[LevelResult, ...] = field(default_factory=tuple)
    referral_chain: tuple[ReferralChainEntry, ...] = field(default_factory=tuple)

    @property
    def flat_lines(self) -> list[CommissionLine]:
        """Flat-level lines in commit order."""
        return [
            line for line in self.lines
            if line.source == CommissionSource.FLAT_LEVEL
        ]

    @property
    def referral_lines(self) -> list[CommissionLine]:
        """Referral lines in commit order."""
        return [
            line for line in self.lines
            if line.source == CommissionSource.REFERRAL_CHAIN
        ]

    @property
    def flat_total(self) -> Decimal:
        """Sum of flat-level lines."""
        return sum((line.amount for line in self.flat_lines), Decimal("0"))

    @property
    def referral_total(self) -> Decimal:
        """Sum of referral lines."""
        return sum((line.amount for line in self.referral_lines), Decimal("0"))

    @property
    def total(self) -> Decimal:
        """Total commission for the sale."""
        return sum((line.amount for line in self.lines), Decimal("0"))

    def amount_for(self, person_id: int) -> Decimal:
        """Total payout of one recipient in this preview."""
        return sum(
            (line.amount for line in self.lines if line.person_id == person_id),
            Decimal("0"),
        )
