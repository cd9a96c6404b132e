"""Integer arithmetic utilities for KES amounts.

All prices, line totals and earnings are int cents internally. Documents
written by checkout store KES amounts (possibly fractional); they are converted
once, at the repository boundary.
"""

from typing import Any

from src.mk_common.sanitize import validate_price


def to_cents(amount: Any) -> int:
    """Convert a stored KES amount to cents: 1250 -> 125000, '99.5' -> 9950.

    Invalid or negative amounts count as 0.
    """
    price = validate_price(amount)
    if price is None:
        return 0
    return int(round(price * 100))


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 125000 -> 'KES 1,250.00', -1200 -> '-KES 12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-KES {abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"KES {cents // 100:,}.{cents % 100:02d}"
