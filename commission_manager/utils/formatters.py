"""
Formatting utilities for money and percentages.

Amounts are stored with 8 decimal places; rounding to the smallest
currency unit happens here, at display time only.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from commission_manager.config.business_constants import DISPLAY_QUANTUM

if TYPE_CHECKING:
    from commission_manager.services.commission.preview import CommissionPreview


def to_display_amount(amount: Decimal) -> Decimal:
    """
    Round an amount to the smallest currency unit.

    Example:
        >>> to_display_amount(Decimal("8333.33333333"))
        Decimal('8333.33')
    """
    return amount.quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, currency: str = "$") -> str:
    """
    Format amount as currency.

    Args:
        amount: Amount to format
        currency: Currency symbol or code

    Returns:
        Formatted string

    Example:
        >>> format_currency(Decimal("25000"))
        '$25,000.00'
        >>> format_currency(Decimal("-7500"), currency="EUR")
        '-7,500.00 EUR'
    """
    value = to_display_amount(amount)
    sign = "-" if value < 0 else ""
    formatted = f"{abs(value):,.2f}"

    if currency in ("$", "€", "£"):
        return f"{sign}{currency}{formatted}"
    return f"{sign}{formatted} {currency}"


def format_percentage(value: Decimal, decimals: int = 1) -> str:
    """
    Format a percentage value.

    Example:
        >>> format_percentage(Decimal("2.5"))
        '2.5%'
    """
    return f"{value:.{decimals}f}%"


def format_preview(preview: "CommissionPreview", currency: str = "$") -> str:
    """
    Render a commission preview as plain text.

    Args:
        preview: Result of CommissionEngine.calculate
        currency: Currency symbol or code

    Returns:
        Multi-line report: sale, flat levels, referral chain, total
    """
    lines = [
        f"Property: {preview.property_id if preview.property_id is not None else '-'}"
        f" ({preview.property_type or 'unknown'})",
        f"Price: {format_currency(preview.price, currency)}",
        f"Seller: {preview.seller_id}",
    ]

    if preview.level_results:
        lines.append("")
        lines.append("Flat levels:")
        for result in preview.level_results:
            if result.people_count:
                share = (
                    f"{result.people_count} people x "
                    f"{format_currency(result.per_person, currency)}"
                )
            else:
                share = "nobody assigned"
            lines.append(
                f"  {result.name} ({format_percentage(result.percentage)}): "
                f"{format_currency(result.level_total, currency)}, {share}"
            )

    referral_lines = preview.referral_lines
    if referral_lines:
        lines.append("")
        lines.append("Referral chain:")
        for line in referral_lines:
            lines.append(
                f"  depth {line.depth}: person {line.person_id} "
                f"({format_percentage(line.percentage)}) "
                f"{format_currency(line.amount, currency)}"
            )

    lines.append("")
    lines.append(f"Total: {format_currency(preview.total, currency)}")
    return "\n".join(lines)
