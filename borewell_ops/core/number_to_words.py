"""
Amount-in-words conversion using the Indian numbering system
(Crore, Lakh, Thousand, Hundred), as printed on invoices.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Number
from typing import Union

from ..exceptions import InvalidAmountError

CURRENCY_UNIT = "Rupees"
SUB_UNIT = "Paise"

ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

# (divisor, scale word); every group is taken mod 100
SCALES = [
    (10_000_000, "Crore"),
    (100_000, "Lakh"),
    (1_000, "Thousand"),
]


def _format_tens(num: int) -> str:
    if num < 20:
        return ONES[num]
    return TENS[num // 10] + (" " + ONES[num % 10] if num % 10 else "")


def _format_hundreds(num: int) -> str:
    if num == 0:
        return ""
    if num < 100:
        return _format_tens(num)
    return ONES[num // 100] + " Hundred" + (" " + _format_tens(num % 100) if num % 100 else "")


def _to_paise(amount: Union[int, float, Decimal]) -> Decimal:
    if isinstance(amount, bool) or not isinstance(amount, (Number, Decimal)):
        raise InvalidAmountError(f"Amount must be a number, got {amount!r}")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidAmountError(f"Amount must be finite, got {amount!r}")
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidAmountError(f"Amount must be a number, got {amount!r}")
    if not value.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {amount!r}")
    if value < 0:
        raise InvalidAmountError(f"Amount must not be negative, got {amount!r}")
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def convert_to_words(amount: Union[int, float, Decimal]) -> str:
    """
    Convert a rupee amount to its long-form English text.

    Args:
        amount: Non-negative, finite amount in rupees

    Returns:
        Text such as "Twenty Nine Thousand Five Hundred Rupees Only"

    Raises:
        InvalidAmountError: For negative, non-finite or non-numeric input
    """
    value = _to_paise(amount)
    if value == 0:
        return f"Zero {CURRENCY_UNIT} Only"

    rupees = int(value)
    paise = int((value - rupees) * 100)

    parts = []
    for divisor, scale in SCALES:
        group = (rupees // divisor) % 100
        if group:
            parts.append(f"{_format_hundreds(group)} {scale}")
    if rupees % 1000:
        parts.append(_format_hundreds(rupees % 1000))

    result = " ".join(parts)
    result = f"{result} {CURRENCY_UNIT}" if result else CURRENCY_UNIT
    if paise > 0:
        result += f" and {_format_tens(paise)} {SUB_UNIT}"
    return result + " Only"
