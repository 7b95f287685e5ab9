"""
Common validators for admin input.

Each validator returns a tuple of (is_valid, parsed_value, error_message)
or (is_valid, error_message) when there is nothing to parse.
"""

import re
from decimal import Decimal, InvalidOperation

from commission_manager.config.business_constants import (
    MAX_PERCENTAGE,
    MAX_PRICE,
    MIN_PERCENTAGE,
)


USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def _to_decimal(value: Decimal | int | str | float) -> Decimal | None:
    """Parse value into Decimal, None if it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        # Go through str to avoid binary float artefacts
        value = repr(value)
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        parsed = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def validate_percentage(
    value: Decimal | int | str | float | None,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a commission percentage.

    Args:
        value: Percentage in the 0..100 range

    Returns:
        Tuple of (is_valid, parsed_percentage, error_message)

    Examples:
        >>> validate_percentage("2.5")
        (True, Decimal('2.5'), None)
        >>> validate_percentage(150)
        (False, None, 'Percentage must be between 0 and 100')
    """
    if value is None:
        return False, None, "Percentage is empty"

    parsed = _to_decimal(value)
    if parsed is None:
        return False, None, "Invalid percentage format"

    if parsed < MIN_PERCENTAGE or parsed > MAX_PERCENTAGE:
        return False, None, "Percentage must be between 0 and 100"

    if parsed.as_tuple().exponent < -2:
        return False, None, "Percentage has too many decimal places (maximum 2)"

    return True, parsed, None


def validate_price(
    value: Decimal | int | str | float | None,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a property price.

    Zero is accepted; it yields zero commissions.

    Args:
        value: Price to validate

    Returns:
        Tuple of (is_valid, parsed_price, error_message)
    """
    if value is None:
        return False, None, "Price is empty"

    parsed = _to_decimal(value)
    if parsed is None:
        return False, None, "Invalid price format"

    if parsed < 0:
        return False, None, "Price must be >= 0"

    if parsed > MAX_PRICE:
        return False, None, f"Price must be <= {MAX_PRICE}"

    if parsed.as_tuple().exponent < -2:
        return False, None, "Price has too many decimal places (maximum 2)"

    return True, parsed, None


def validate_username(username: str | None) -> tuple[bool, str | None]:
    """
    Validate a username.

    Examples:
        >>> validate_username("jane.doe")
        (True, None)
        >>> validate_username("a")
        (False, 'Username must be 3-50 characters: letters, digits, _ . -')
    """
    if not username or not username.strip():
        return False, "Username is empty"

    if not USERNAME_PATTERN.match(username.strip()):
        return False, "Username must be 3-50 characters: letters, digits, _ . -"

    return True, None


def validate_email(email: str | None) -> tuple[bool, str | None]:
    """
    Validate an email address.

    Examples:
        >>> validate_email("user@example.com")
        (True, None)
        >>> validate_email("invalid")
        (False, "Email must contain '@'")
    """
    if not email or not email.strip():
        return False, "Email is empty"

    email = email.strip()

    if len(email) > 255:
        return False, "Email is too long (maximum 255 characters)"

    if "@" not in email:
        return False, "Email must contain '@'"

    if email.count("@") != 1:
        return False, "Email must contain exactly one '@'"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    return True, None


def validate_phone(phone: str | None) -> tuple[bool, str | None]:
    """
    Validate an optional phone number.

    Empty values are valid (phone is optional).
    """
    if phone is None or not phone.strip():
        return True, None

    if len(phone) > 50:
        return False, "Phone is too long (maximum 50 characters)"

    digits = re.sub(r"\D", "", phone)
    if len(digits) < 7 or len(digits) > 15:
        return False, "Phone must be 7-15 digits"

    return True, None
