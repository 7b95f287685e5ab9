"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from decimal import Decimal

from sqlalchemy import DECIMAL, String
from sqlalchemy.types import TypeDecorator


class ExactDecimal(TypeDecorator):
    """
    DECIMAL column that keeps every digit on SQLite too.

    SQLite has no decimal storage and SQLAlchemy binds Decimal there as a
    float, which loses digits past ~15 significant places. On SQLite the
    value is stored as its fixed-point text instead; other backends use a
    native DECIMAL(precision, scale).
    """

    impl = DECIMAL
    cache_ok = True

    def __init__(self, precision: int, scale: int) -> None:
        super().__init__(precision, scale, asdecimal=True)
        self.precision = precision
        self.scale = scale
        self.quantum = Decimal(1).scaleb(-scale)

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            # sign, integer digits, point, fraction
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(
            DECIMAL(self.precision, self.scale, asdecimal=True)
        )

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return str(Decimal(value).quantize(self.quantum))

    def process_result_value(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        return Decimal(str(value)).quantize(self.quantum)


# Standard money type for prices and commission amounts
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
# Stored as text on SQLite; price >= 0 still holds there because a
# leading "-" sorts below "0"
MoneyType = ExactDecimal(18, 8)

# Standard percentage type for commission levels
# Precision: 5 digits total, 2 after decimal point
# Range: 0.00 to 100.00 (enforced by check constraints)
PercentType = DECIMAL(5, 2, asdecimal=True)
