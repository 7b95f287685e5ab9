"""
Business constants for commission calculation.

Single source of truth for default level schedules, numeric precision
and percentage bounds. All other modules import from here.
"""

from decimal import Decimal

# Default descending schedule used to bootstrap an empty level scope.
# Seeded rows are stored with is_default=True.
DEFAULT_LEVEL_PERCENTAGES: tuple[Decimal, ...] = (
    Decimal("5.0"),  # Level 1
    Decimal("3.0"),  # Level 2
    Decimal("2.0"),  # Level 3
    Decimal("1.5"),  # Level 4
    Decimal("1.0"),  # Level 5
)

LEVEL_NAME_TEMPLATE = "Level {order}"
REFERRAL_LEVEL_NAME_TEMPLATE = "Referral Level {order}"

# Percentage bounds (inclusive)
MIN_PERCENTAGE = Decimal("0")
MAX_PERCENTAGE = Decimal("100")

# Percentages are entered with one fractional digit, stored with two
PERCENTAGE_QUANTUM = Decimal("0.01")

# Storage precision for money, matches MoneyType scale (8)
MONEY_QUANTUM = Decimal("0.00000001")

# Smallest currency unit, used at display time only
DISPLAY_QUANTUM = Decimal("0.01")

# Upper bound for property prices: DECIMAL(18, 8) holds 10 integer digits
MAX_PRICE = Decimal("9999999999.99")

# Referral depth d maps to referral_levels.level (d + offset).
# 0 means depth 1 (direct referrer) is paid from referral level 1.
REFERRAL_LEVEL_OFFSET = 0
