"""
Date canonicalization for receipt text.

Numeric forms are read month-first (US receipts). Textual forms are tried
against a list of strptime formats.
"""

import re
from datetime import date, datetime
from typing import Optional

PLAUSIBILITY_YEARS = 2

_ORDINAL_SUFFIX = re.compile(r'(\d+)(?:st|nd|rd|th)\b', re.IGNORECASE)
_ISO_STRICT = re.compile(r'^\d{4}-\d{2}-\d{2}$')

TEXTUAL_DATE_FORMATS = (
    '%B %d, %Y', '%b %d, %Y',
    '%B %d %Y', '%b %d %Y',
    '%d %B %Y', '%d %b %Y',
    '%d %B, %Y', '%d %b, %Y',
)


def _expand_year(year: int) -> int:
    # Two-digit years on receipts are always this century
    return 2000 + year if year < 100 else year


def build_date(year: int, month: int, day: int) -> Optional[date]:
    """Build a calendar date, returning None for impossible values (e.g. 02/30)."""
    try:
        return date(_expand_year(year), month, day)
    except ValueError:
        return None


def parse_month_first(month: str, day: str, year: str) -> Optional[date]:
    """Parse M/D/Y or M-D-Y components (1-based month)."""
    try:
        return build_date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_iso(year: str, month: str, day: str) -> Optional[date]:
    try:
        return build_date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_textual_date(date_str: str) -> Optional[date]:
    """
    Parse spelled-out dates such as "August 7, 2024" or "7 Aug 2024".

    Ordinal suffixes ("7th") and a trailing period after abbreviated month
    names ("Aug.") are tolerated.
    """
    if not date_str:
        return None

    cleaned = _ORDINAL_SUFFIX.sub(r'\1', date_str.strip())
    cleaned = re.sub(r'(?<=[A-Za-z])\.', '', cleaned)
    cleaned = re.sub(r'\bsept\b', 'Sep', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\s+', ' ', cleaned)

    for fmt in TEXTUAL_DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    return None


def subtract_years(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def within_plausibility_window(candidate: date, today: date, years: int = PLAUSIBILITY_YEARS) -> bool:
    """True when ``today - years <= candidate <= today`` (inclusive)."""
    return subtract_years(today, years) <= candidate <= today


def is_strict_iso_date(value) -> bool:
    """True for a ``YYYY-MM-DD`` string (or date) naming a real calendar day."""
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    if not isinstance(value, str) or not _ISO_STRICT.match(value):
        return False
    try:
        datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        return False
    return True
