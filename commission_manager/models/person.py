"""
Person model.

Represents an agent who can sell properties, refer other agents and
receive commissions.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_manager.models.base import Base


class Person(Base):
    """Person model - agents and referrers."""

    __tablename__ = "people"
    __table_args__ = (
        CheckConstraint(
            "referral_level >= 1", name="referral_level_positive"
        ),
        CheckConstraint(
            "referred_by IS NULL OR referred_by <> id",
            name="no_self_referral",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Referral hierarchy (must stay acyclic)
    referred_by: Mapped[int | None] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Derived: 1 + referrer.referral_level, 1 for roots
    referral_level: Mapped[int] = mapped_column(
        Integer, default=1, nullable=False
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

    @property
    def full_name(self) -> str:
        """First and last name."""
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Person(id={self.id}, username={self.username}, "
            f"referred_by={self.referred_by}, "
            f"referral_level={self.referral_level})>"
        )
