"""
Money helpers for the edit form.

Amounts are typed and displayed with comma thousands separators
("1,000,000") and stored as Decimal VND.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

_NON_DIGITS = re.compile(r"[^0-9]")


class InvalidAmountError(ValueError):
    """The amount text is empty or not a number."""
    pass


def format_money(value: Optional[str]) -> str:
    """
    Format typed text as a grouped amount.

    Every non-digit is dropped first, so "1.000đ" becomes "1,000".
    Returns an empty string when no digits remain.
    """
    digits = _NON_DIGITS.sub("", value or "")
    if not digits:
        return ""
    return f"{int(digits):,}"


def parse_formatted_money(value: Optional[str]) -> Decimal:
    """
    Parse a formatted amount back to a Decimal.

    Raises:
        InvalidAmountError: if the text is empty or not numeric
    """
    cleaned = (value or "").replace(",", "").strip()
    if not cleaned:
        raise InvalidAmountError("Amount is empty")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise InvalidAmountError(f"Amount is not a number: {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Amount is not a number: {value!r}")

    return amount
