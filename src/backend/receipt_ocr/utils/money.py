"""
Money parsing utilities for OCR amounts.

Receipt amounts come out of OCR as short strings like "$3.50", "3.50" or
"1,234.56". Everything is parsed into Decimal so totals can be compared
without float drift.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional
import re


def parse_money(
    amount_str: str,
    allow_negative: bool = False
) -> Optional[Decimal]:
    """
    Parse a money string into a Decimal.

    Args:
        amount_str: String containing amount (e.g., "$1,234.56", "3.50")
        allow_negative: Whether to allow negative amounts

    Returns:
        Decimal amount or None if parsing fails

    Examples:
        >>> parse_money("$1,234.56")
        Decimal('1234.56')
        >>> parse_money("($12.34)", allow_negative=True)
        Decimal('-12.34')
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    is_negative = False
    cleaned = amount_str.strip()

    # Parentheses notation for negative amounts
    if cleaned.startswith('(') and cleaned.endswith(')'):
        if not allow_negative:
            return None
        is_negative = True
        cleaned = cleaned[1:-1].strip()

    if cleaned.startswith('-'):
        if not allow_negative:
            return None
        is_negative = True
        cleaned = cleaned[1:].strip()

    # Strip currency symbols and codes
    cleaned = re.sub(r'[$£€¥]\s*|[A-Z]{3}\s*', '', cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.replace(',', '').replace(' ', '')

    if not cleaned:
        return None

    try:
        result = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None

    if not result.is_finite():
        return None

    return -result if is_negative else result


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def sum_amounts(amounts: Iterable[Optional[Decimal]]) -> Decimal:
    """Sum amounts, treating None as zero."""
    total = Decimal('0')
    for amount in amounts:
        if amount is not None:
            total += amount
    return total
