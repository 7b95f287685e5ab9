"""Input validators."""

from commission_manager.validators.common import (
    validate_email,
    validate_percentage,
    validate_phone,
    validate_price,
    validate_username,
)


__all__ = [
    "validate_email",
    "validate_percentage",
    "validate_phone",
    "validate_price",
    "validate_username",
]
