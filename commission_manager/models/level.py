"""
Level models.

Level: fixed "Level N" commission tier with a roster of people.
LevelAssignment: roster membership (level_people).
ReferralLevel: commission tier keyed by referral depth.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_manager.models.base import Base
from commission_manager.models.types import PercentType


class Level(Base):
    """Commission level with a people roster."""

    __tablename__ = "levels"
    __table_args__ = (
        CheckConstraint("level_order >= 1", name="level_order_positive"),
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="commission_percentage_range",
        ),
        # Property-specific schedule
        UniqueConstraint(
            "property_id", "level_order", name="uq_levels_property_order"
        ),
        # Global schedule (property_id IS NULL)
        Index(
            "uq_levels_global_order",
            "level_order",
            unique=True,
            postgresql_where=text("property_id IS NULL"),
            sqlite_where=text("property_id IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    level_order: Mapped[int] = mapped_column(Integer, nullable=False)
    commission_percentage: Mapped[Decimal] = mapped_column(
        PercentType, default=Decimal("0"), nullable=False
    )

    # NULL for the global schedule
    property_id: Mapped[int | None] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # True for seeded bootstrap values, cleared on any admin update
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Level(id={self.id}, name={self.name}, "
            f"level_order={self.level_order}, "
            f"commission_percentage={self.commission_percentage})>"
        )


class LevelAssignment(Base):
    """Person assigned to a commission level roster."""

    __tablename__ = "level_people"
    __table_args__ = (
        UniqueConstraint(
            "level_id", "person_id", name="uq_level_people_level_person"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    level_id: Mapped[int] = mapped_column(
        ForeignKey("levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LevelAssignment(level_id={self.level_id}, "
            f"person_id={self.person_id})>"
        )


class ReferralLevel(Base):
    """Commission percentage for a referral depth."""

    __tablename__ = "referral_levels"
    __table_args__ = (
        CheckConstraint("level >= 1", name="level_positive"),
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="commission_percentage_range",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    level: Mapped[int] = mapped_column(
        Integer, unique=True, index=True, nullable=False
    )
    commission_percentage: Mapped[Decimal] = mapped_column(
        PercentType, default=Decimal("0"), nullable=False
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralLevel(level={self.level}, "
            f"commission_percentage={self.commission_percentage})>"
        )
