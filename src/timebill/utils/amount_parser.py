"""Amount parsing and rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

TWO_PLACES = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a non-negative amount string (an hourly rate or a tax rate).

    Handles various formats:
    - "85"
    - "$85.50"
    - "1,250.00"
    - "7.5%"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed or is negative
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove currency and percent symbols, thousands separators
    cleaned = re.sub(r"[$€£¥%,]", "", amount_str.strip()).strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: '{amount_str}'")
    return amount


def round_amount(value: Decimal) -> Decimal:
    """Round hours or money to two decimal places, halves away from zero."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
