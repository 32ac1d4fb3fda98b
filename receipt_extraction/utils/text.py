"""
Text normalization helpers for OCR output.

- normalize_lines: raw OCR text → ordered, trimmed, non-empty lines
- clean_store_name: merchant display form ("CVS  PHARMACY!" → "Cvs Pharmacy")
- clean_item_description: item sanitization, case preserved
"""

import re
from typing import List, Optional, Union

_WHITESPACE_RUN = re.compile(r'\s+')
_STORE_NAME_NOISE = re.compile(r'[^A-Za-z0-9 &.\-]')
_ITEM_NOISE = re.compile(r'[^A-Za-z0-9 \-]')


def normalize_lines(text: Optional[Union[str, bytes]]) -> List[str]:
    """
    Split OCR text into its non-empty lines.

    Each line is trimmed; blank lines are dropped and order is preserved.
    Bytes are decoded as UTF-8 with replacement so malformed input degrades
    instead of raising.

    Examples:
        >>> normalize_lines("  CVS PHARMACY \\n\\n\\nTOTAL $14.00\\n")
        ['CVS PHARMACY', 'TOTAL $14.00']
    """
    if not text:
        return []
    if isinstance(text, bytes):
        text = text.decode('utf-8', errors='replace')
    return [line.strip() for line in text.split('\n') if line.strip()]


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(' ', text).strip()


def clean_store_name(name: str) -> str:
    """
    Normalize a merchant name for display.

    Keeps letters, digits, space, '&', '-' and '.', collapses whitespace and
    title-cases every token. Internal acronym letters are lowercased on
    purpose: "CVS" becomes "Cvs".
    """
    if not name:
        return ''
    # Whitespace other than plain spaces (tabs) separates tokens too
    cleaned = _STORE_NAME_NOISE.sub('', _WHITESPACE_RUN.sub(' ', name))
    cleaned = collapse_whitespace(cleaned)
    return ' '.join(token[:1].upper() + token[1:].lower() for token in cleaned.split(' ') if token)


def clean_item_description(description: str) -> str:
    """Strip an item description down to letters, digits, spaces and hyphens."""
    if not description:
        return ''
    cleaned = _ITEM_NOISE.sub('', _WHITESPACE_RUN.sub(' ', description))
    return collapse_whitespace(cleaned)
