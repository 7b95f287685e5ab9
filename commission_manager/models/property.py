"""
Property model.

A property sale that commissions are calculated against.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_manager.models.base import Base
from commission_manager.models.enums import PropertyType
from commission_manager.models.types import MoneyType


class Property(Base):
    """Property model."""

    __tablename__ = "properties"
    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    property_name: Mapped[str] = mapped_column(
        String(255), default="", nullable=False
    )
    property_type: Mapped[PropertyType] = mapped_column(
        Enum(
            PropertyType,
            name="property_type",
            values_callable=lambda enum: [item.value for item in enum],
        ),
        nullable=False,
    )
    address: Mapped[str] = mapped_column(
        String(500), default="", nullable=False
    )
    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    sold_by: Mapped[int | None] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
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
            f"<Property(id={self.id}, type={self.property_type}, "
            f"price={self.price}, sold_by={self.sold_by})>"
        )
