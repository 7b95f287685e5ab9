"""
Commission ledger models.

CommissionEvent: one calculation event for a property (a committed batch).
Commission: flat-level ledger row (commissions).
ReferralCommission: referral-chain ledger row (referral_commissions).

Ledger rows are append-only. Corrections are new rows with
entry_type="reversal" in a later event.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_manager.models.base import Base
from commission_manager.models.enums import EntryType
from commission_manager.models.types import MoneyType, PercentType


class CommissionEvent(Base):
    """Calculation event - one per committed batch."""

    __tablename__ = "commission_events"
    __table_args__ = (
        # Two writers racing for the same property collide here
        UniqueConstraint(
            "property_id", "revision", name="uq_commission_events_property_revision"
        ),
        CheckConstraint("revision >= 1", name="revision_positive"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    seller_id: Mapped[int] = mapped_column(
        ForeignKey("people.id", ondelete="RESTRICT"),
        nullable=False,
    )
    revision: Mapped[int] = mapped_column(Integer, nullable=False)
    is_override: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Snapshot of the inputs the batch was computed from
    property_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionEvent(id={self.id}, property_id={self.property_id}, "
            f"revision={self.revision}, total_amount={self.total_amount})>"
        )


class Commission(Base):
    """Flat-level commission ledger row."""

    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="commission_percentage_range",
        ),
        UniqueConstraint(
            "event_id", "sequence", name="uq_commissions_event_sequence"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    event_id: Mapped[int] = mapped_column(
        ForeignKey("commission_events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Levels may be edited later; level_order keeps the snapshot
    level_id: Mapped[int | None] = mapped_column(
        ForeignKey("levels.id", ondelete="SET NULL"),
        nullable=True,
    )
    level_order: Mapped[int] = mapped_column(Integer, nullable=False)

    commission_percentage: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    entry_type: Mapped[str] = mapped_column(
        String(20), default=EntryType.CALCULATION.value, nullable=False
    )

    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, property_id={self.property_id}, "
            f"person_id={self.person_id}, level_order={self.level_order}, "
            f"commission_amount={self.commission_amount})>"
        )


class ReferralCommission(Base):
    """Referral-chain commission ledger row."""

    __tablename__ = "referral_commissions"
    __table_args__ = (
        CheckConstraint("referral_level >= 1", name="referral_level_positive"),
        CheckConstraint("depth >= 1", name="depth_positive"),
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="commission_percentage_range",
        ),
        UniqueConstraint(
            "event_id", "sequence", name="uq_referral_commissions_event_sequence"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    event_id: Mapped[int] = mapped_column(
        ForeignKey("commission_events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("people.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Distance from the seller and the referral_levels key it was paid from
    depth: Mapped[int] = mapped_column(Integer, nullable=False)
    referral_level: Mapped[int] = mapped_column(Integer, nullable=False)

    commission_percentage: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    entry_type: Mapped[str] = mapped_column(
        String(20), default=EntryType.CALCULATION.value, nullable=False
    )

    calculated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralCommission(id={self.id}, property_id={self.property_id}, "
            f"referrer_id={self.referrer_id}, depth={self.depth}, "
            f"commission_amount={self.commission_amount})>"
        )
