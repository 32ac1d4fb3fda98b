"""
Candidate dataclasses for extraction scoring.

Each candidate represents a potential extracted value with the metadata
used for scoring and selection.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

AMOUNT_KEYWORD_BONUSES = (
    ('total', 0.3),
    ('amount', 0.2),
    ('balance', 0.15),
)


@dataclass
class Candidate:
    """Base class for extraction candidates."""
    value: Any
    pattern_name: str
    line_position: int
    raw_text: str = ""  # Original matched text


@dataclass
class StoreNameCandidate(Candidate):
    """
    Candidate for the merchant name.

    Scoring factors:
    - line_position: earlier lines score higher
    - is_fallback: found by the loose first-plausible-line rule
    """
    value: str
    is_fallback: bool = False


@dataclass
class AmountCandidate(Candidate):
    """
    Candidate for the receipt total.

    Scoring factors:
    - keywords: which of total/amount/balance appear on the line
    - in_receipt_tail: line lies past 60% of the receipt
    - has_decimal_point: matched numeral carries a decimal point
    """
    value: Decimal
    keywords: tuple[str, ...] = ()
    in_receipt_tail: bool = False
    has_decimal_point: bool = False


@dataclass
class DateCandidate(Candidate):
    """Candidate for the receipt date (already inside the plausibility window)."""
    value: date


# Helper functions for creating candidates

def create_amount_candidate(
    value: Decimal,
    pattern_name: str,
    numeral: str,
    line: str,
    line_position: int,
    line_count: int
) -> AmountCandidate:
    """
    Create AmountCandidate with computed context flags.

    Args:
        value: Parsed amount
        pattern_name: Name of pattern that matched
        numeral: The matched numeral as written
        line: Full line the numeral was found on
        line_position: Index of the line
        line_count: Number of lines in the receipt

    Returns:
        AmountCandidate with computed flags
    """
    lower_line = line.lower()
    keywords = tuple(keyword for keyword, _ in AMOUNT_KEYWORD_BONUSES if keyword in lower_line)

    return AmountCandidate(
        value=value,
        pattern_name=pattern_name,
        line_position=line_position,
        raw_text=line,
        keywords=keywords,
        in_receipt_tail=line_position > line_count * 0.6,
        has_decimal_point='.' in numeral,
    )


def create_store_name_candidate(
    value: str,
    pattern_name: str,
    line: str,
    line_position: int,
    is_fallback: bool = False
) -> StoreNameCandidate:
    return StoreNameCandidate(
        value=value,
        pattern_name=pattern_name,
        line_position=line_position,
        raw_text=line,
        is_fallback=is_fallback,
    )


def create_date_candidate(
    value: date,
    pattern_name: str,
    line: str,
    line_position: int
) -> DateCandidate:
    return DateCandidate(
        value=value,
        pattern_name=pattern_name,
        line_position=line_position,
        raw_text=line,
    )
