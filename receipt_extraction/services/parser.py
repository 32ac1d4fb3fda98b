"""
Receipt parser service for extracting structured data from OCR text.

The parser works on the normalized line sequence and runs four independent
extractors (store name, amount, date, line items). Every extractor reports
absence as a zero-confidence field instead of raising.
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from receipt_extraction.models.extraction import ExtractionResult, LineItem, ScoredField
from receipt_extraction.utils.text import normalize_lines, clean_store_name, clean_item_description
from receipt_extraction.utils.money import parse_money, in_open_range, format_price
from receipt_extraction.utils.dates import (
    parse_iso,
    parse_month_first,
    parse_textual_date,
    within_plausibility_window,
)
from receipt_extraction.utils.candidates import (
    AmountCandidate,
    create_amount_candidate,
    create_date_candidate,
    create_store_name_candidate,
)
from receipt_extraction.utils.scoring import (
    STORE_NAME_SCAN_LINES,
    DATE_FALLBACK_CONFIDENCE,
    score_store_name_candidate,
    score_date_candidate,
    select_best_amount,
)

logger = logging.getLogger(__name__)

DATE_SCAN_LINES = 10
MAX_LINE_ITEMS = 15
AMOUNT_CEILING = Decimal('10000')
ITEM_PRICE_CEILING = Decimal('1000')
ITEM_LINE_MIN_LENGTH = 3
ITEM_LINE_MAX_LENGTH = 60


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    flags: int = re.IGNORECASE
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))


# Shared numeral grammar: optional thousands groups, optional fraction.
# A trailing period (OCR noise) may follow; a further fraction digit may not.
_NUMERAL = r'(?<![\d.,])(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)(?!\d|\.\d)'
_DECIMAL = r'(?<![\d.,])(\d{1,3}(?:,\d{3})+\.\d{2}|\d+\.\d{2})(?![\d])'
_AMOUNT_KEYWORD = r'(?:total|amount|balance)'
_MONTH = (
    r'(?:january|february|march|april|may|june|july|august|september|october|'
    r'november|december|sept|sep|jan|feb|mar|apr|jun|jul|aug|oct|nov|dec)\.?'
)

KNOWN_CHAINS = (
    'cvs', 'walgreens', r'rite\s*aid', 'walmart', r'wal-mart', 'target',
    'costco', 'kroger', 'safeway', 'publix', r'duane\s+reade', r"sam'?s\s+club",
    'meijer', 'albertsons', r'h-e-b', r'bartell\s+drugs', r'longs\s+drugs',
    r'whole\s+foods', r"trader\s+joe'?s", r'express\s+scripts',
)


STORE_NAME_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='known_chain',
        pattern=r'^((?:' + '|'.join(KNOWN_CHAINS) + r')\b.*)$',
        example='CVS PHARMACY #1234',
        notes='Known pharmacy/retail chain at line start, any case',
    ),
    PatternSpec(
        name='name_with_category',
        pattern=(
            r"([A-Z][A-Za-z&'.-]*(?:\s+[A-Z][A-Za-z&'.-]*)*"
            r"\s+(?i:pharmacy|store|market|clinic))\b"
        ),
        example='Main Street Pharmacy',
        notes='Capitalized phrase followed by a category word',
        flags=0,
    ),
    PatternSpec(
        name='doctor_prefix',
        pattern=r"^((?i:dr)(?:\.\s*|\s+)[A-Z][A-Za-z'-]*(?:\s+[A-Z][A-Za-z.'-]*)*)",
        example='DR. JANE SMITH DDS',
        flags=0,
    ),
    PatternSpec(
        name='all_caps_line',
        pattern=r"^([A-Z][A-Z&'.\s-]{2,})$",
        example='SMITH & SONS',
        notes='Generic all-caps/ampersand phrase occupying the whole line',
        flags=0,
    ),
)

AMOUNT_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='keyword_then_amount',
        pattern=r'\b' + _AMOUNT_KEYWORD + r'\b[^\d$\n]{0,20}?\$?\s*' + _NUMERAL,
        example='TOTAL $14.00',
    ),
    PatternSpec(
        name='lone_decimal',
        pattern=r'^\$?\s*' + _DECIMAL + r'$',
        example='14.00',
    ),
    PatternSpec(
        name='currency_prefixed',
        pattern=r'\$\s*' + _DECIMAL + r'(?:\s*' + _AMOUNT_KEYWORD + r')?',
        example='$14.00 TOTAL',
    ),
    PatternSpec(
        name='decimal_then_keyword',
        pattern=_DECIMAL + r'\s*' + _AMOUNT_KEYWORD + r'\b',
        example='14.00 TOTAL',
    ),
)

DATE_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='slash_mdy',
        pattern=r'\b(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})\b',
        example='08/07/2024',
        notes='Month first (US receipts)',
    ),
    PatternSpec(
        name='dash_mdy',
        pattern=r'\b(\d{1,2})-(\d{1,2})-(\d{4}|\d{2})\b',
        example='08-07-2024',
    ),
    PatternSpec(
        name='iso_ymd',
        pattern=r'\b(\d{4})-(\d{1,2})-(\d{1,2})\b',
        example='2024-08-07',
    ),
    PatternSpec(
        name='month_day_year',
        pattern=r'\b(' + _MONTH + r'\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4})\b',
        example='August 7, 2024',
    ),
    PatternSpec(
        name='day_month_year',
        pattern=r'\b(\d{1,2}(?:st|nd|rd|th)?\s+' + _MONTH + r',?\s+\d{4})\b',
        example='7 August 2024',
    ),
)

LINE_ITEM_EXCLUSION = re.compile(
    r'^(?:total|subtotal|tax|amount|balance|change|cash|card|visa|mastercard|'
    r'debit|credit|thank|receipt|store|pharmacy|date|time)',
    re.IGNORECASE,
)

LINE_ITEM_PATTERNS: Tuple[PatternSpec, ...] = (
    PatternSpec(
        name='item_price_tax_flag',
        pattern=r'^(.+?)\s+\$?\s*(\d+\.\d{2})\s+[A-Z]$',
        example='ADVIL 24CT  12.99 T',
        notes='Price followed by a one-letter tax code',
    ),
    PatternSpec(
        name='item_price',
        pattern=r'^(.+?)\s+\$?\s*(\d+\.\d{2})$',
        example='Advil  $12.99',
    ),
    PatternSpec(
        name='item_price_loose',
        pattern=r'^(.+?)\s+\$?\s*(\d+(?:\.\d{0,2})?)$',
        example='Bandages 4.5',
        notes='Most permissive: zero to two fraction digits',
    ),
)


@dataclass(frozen=True)
class ReceiptPatterns:
    """Read-only pattern tables shared by every parser instance.

    Table order is precedence: earlier patterns are tried first.
    """
    store_name: Tuple[PatternSpec, ...] = STORE_NAME_PATTERNS
    amount: Tuple[PatternSpec, ...] = AMOUNT_PATTERNS
    date: Tuple[PatternSpec, ...] = DATE_PATTERNS
    line_item: Tuple[PatternSpec, ...] = LINE_ITEM_PATTERNS
    line_item_exclusion: re.Pattern = LINE_ITEM_EXCLUSION


DEFAULT_PATTERNS = ReceiptPatterns()


def _parse_date_match(spec: PatternSpec, match: re.Match) -> Optional[date]:
    """Turn a date pattern match into a calendar date."""
    if spec.name in ('slash_mdy', 'dash_mdy'):
        return parse_month_first(*match.groups())
    if spec.name == 'iso_ymd':
        return parse_iso(*match.groups())
    return parse_textual_date(match.group(1))


class ReceiptParser:
    """Service for parsing receipt text and extracting structured data."""

    def __init__(self, patterns: ReceiptPatterns = DEFAULT_PATTERNS):
        self.patterns = patterns

    def parse(
        self,
        text: Optional[str],
        ocr_confidence: float = 0.0,
        today: Optional[date] = None
    ) -> ExtractionResult:
        """
        Parse receipt text and extract all available fields.

        Args:
            text: OCR-extracted text from receipt
            ocr_confidence: Engine confidence for the whole text block (0-100)
            today: Reference date for the plausibility window (defaults to today)

        Returns:
            ExtractionResult with per-field confidences
        """
        today = today or date.today()
        lines = normalize_lines(text)
        logger.debug("Parsing receipt with %d line(s)", len(lines))

        return ExtractionResult(
            store_name=self.extract_store_name(lines),
            amount=self.extract_amount(lines),
            date=self.extract_date(lines, today=today),
            line_items=self.extract_line_items(lines),
            ocr_confidence=ocr_confidence,
        )

    def extract_store_name(self, lines: List[str]) -> ScoredField[str]:
        """
        Extract the merchant name from the top of the receipt.

        The earliest line matching any pattern wins; patterns only break
        ties within a line. Falls back to the first plausible line anywhere
        with a fixed low confidence.
        """
        for line_idx, line in enumerate(lines[:STORE_NAME_SCAN_LINES]):
            for spec in self.patterns.store_name:
                match = spec.compiled.search(line)
                if not match:
                    continue

                name = clean_store_name(match.group(1))
                if not name:
                    continue

                candidate = create_store_name_candidate(
                    value=name,
                    pattern_name=spec.name,
                    line=line,
                    line_position=line_idx,
                )
                confidence = score_store_name_candidate(candidate)
                logger.debug("Store name %r from pattern %s on line %d", name, spec.name, line_idx)
                return ScoredField(value=name, confidence=confidence)

        for line_idx, line in enumerate(lines):
            if 3 < len(line) < 50 and re.search(r'[A-Za-z]', line):
                name = clean_store_name(line)
                if not name:
                    continue
                candidate = create_store_name_candidate(
                    value=name,
                    pattern_name='first_plausible_line',
                    line=line,
                    line_position=line_idx,
                    is_fallback=True,
                )
                logger.debug("Store name %r from fallback line %d", name, line_idx)
                return ScoredField(value=name, confidence=score_store_name_candidate(candidate))

        return ScoredField.missing()

    def extract_amount(self, lines: List[str]) -> ScoredField[Decimal]:
        """
        Extract the receipt total using candidate-based scoring.

        Every match of every pattern on every line becomes a candidate;
        the highest score wins and ties keep the earliest candidate.
        """
        candidates: List[AmountCandidate] = []

        for line_idx, line in enumerate(lines):
            for spec in self.patterns.amount:
                for match in spec.compiled.finditer(line):
                    numeral = match.group(1)
                    value = parse_money(numeral)
                    if not in_open_range(value, 0, AMOUNT_CEILING):
                        continue

                    candidates.append(create_amount_candidate(
                        value=value,
                        pattern_name=spec.name,
                        numeral=numeral,
                        line=line,
                        line_position=line_idx,
                        line_count=len(lines),
                    ))

        result = select_best_amount(candidates)
        if result is None:
            return ScoredField.missing()

        best, score = result
        logger.debug(
            "Amount %s from pattern %s on line %d (%d candidate(s))",
            best.value, best.pattern_name, best.line_position, len(candidates)
        )
        return ScoredField(value=best.value, confidence=score)

    def extract_date(self, lines: List[str], today: Optional[date] = None) -> ScoredField[date]:
        """
        Extract the receipt date from the first lines.

        On each line only the first matching pattern is considered. A date
        outside the plausibility window discards that line and scanning
        moves on. Without any usable date, today's date is returned as a
        low-confidence placeholder.
        """
        today = today or date.today()

        for line_idx, line in enumerate(lines[:DATE_SCAN_LINES]):
            spec, match = self._first_match(self.patterns.date, line)
            if match is None:
                continue

            parsed = _parse_date_match(spec, match)
            if parsed is None or not within_plausibility_window(parsed, today):
                logger.debug("Discarding date %r on line %d", match.group(0), line_idx)
                continue

            candidate = create_date_candidate(
                value=parsed,
                pattern_name=spec.name,
                line=line,
                line_position=line_idx,
            )
            return ScoredField(value=parsed, confidence=score_date_candidate(candidate))

        logger.debug("No plausible date found, falling back to %s", today.isoformat())
        return ScoredField(value=today, confidence=DATE_FALLBACK_CONFIDENCE)

    def extract_line_items(self, lines: List[str]) -> Tuple[LineItem, ...]:
        """
        Extract purchased items as (description, price) pairs.

        Summary/payment lines are skipped by keyword; the first matching
        item pattern wins per line. At most 15 items are kept.
        """
        items: List[LineItem] = []

        for line in lines:
            if len(items) >= MAX_LINE_ITEMS:
                break
            if not ITEM_LINE_MIN_LENGTH <= len(line) <= ITEM_LINE_MAX_LENGTH:
                continue
            if self.patterns.line_item_exclusion.match(line):
                continue

            _, match = self._first_match(self.patterns.line_item, line)
            if match is None:
                continue

            description = clean_item_description(match.group(1))
            price = parse_money(match.group(2))
            if len(description) <= 2 or not in_open_range(price, 0, ITEM_PRICE_CEILING):
                continue

            items.append(LineItem(description=description, price=format_price(price)))

        return tuple(items)

    @staticmethod
    def _first_match(
        specs: Tuple[PatternSpec, ...],
        line: str
    ) -> Tuple[Optional[PatternSpec], Optional[re.Match]]:
        for spec in specs:
            match = spec.compiled.search(line)
            if match:
                return spec, match
        return None, None


def parse_receipt(
    text: Optional[str],
    ocr_confidence: float = 0.0,
    today: Optional[date] = None
) -> ExtractionResult:
    """Convenience wrapper: parse ``text`` with the default pattern tables."""
    return ReceiptParser().parse(text, ocr_confidence=ocr_confidence, today=today)
