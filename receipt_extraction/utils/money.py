"""
Money parsing utilities for US-format receipt numerals.

Handles:
- Currency symbols: $12.34, $ 12.34
- Thousands separators: 1,234.56
- Missing decimals: 1234 → 1234.00 when formatted
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union
import re

TWO_PLACES = Decimal('0.01')

_CURRENCY_PATTERN = re.compile(r'[$£€¥]\s*|\bUSD\b\s*', re.IGNORECASE)


def parse_money(amount_str: str) -> Optional[Decimal]:
    """
    Parse a US-format money string.

    Args:
        amount_str: String containing amount (e.g., "$1,234.56", "14.00")

    Returns:
        Decimal amount or None if parsing fails

    Examples:
        >>> parse_money("$1,234.56")
        Decimal('1234.56')
        >>> parse_money("12")
        Decimal('12')
        >>> parse_money("abc") is None
        True
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    cleaned = _CURRENCY_PATTERN.sub('', amount_str.strip())
    cleaned = cleaned.replace(',', '').replace(' ', '')

    if not cleaned:
        return None

    try:
        result = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None

    if not result.is_finite():
        return None

    return result


def in_open_range(value: Optional[Decimal], low: Union[int, Decimal], high: Union[int, Decimal]) -> bool:
    """True when ``low < value < high``."""
    if value is None:
        return False
    return Decimal(low) < value < Decimal(high)


def format_price(amount: Decimal) -> str:
    """
    Format a Decimal with exactly two fraction digits.

    Examples:
        >>> format_price(Decimal('12.9'))
        '12.90'
        >>> format_price(Decimal('5'))
        '5.00'
    """
    return str(amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))
