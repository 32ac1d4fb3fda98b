"""
End-to-end analysis of recognized receipt text.

Runs the parser, then validation, categorization and review routing over
the assembled result.
"""

import logging
from datetime import date
from typing import Optional

from receipt_extraction.config import settings
from receipt_extraction.models.extraction import ReceiptAnalysis
from receipt_extraction.services.parser import ReceiptParser
from receipt_extraction.services.validation import validate_result
from receipt_extraction.services.categorization import categorize
from receipt_extraction.services.review import compute_review_flags

logger = logging.getLogger(__name__)


def analyze_receipt(
    text: Optional[str],
    ocr_confidence: float,
    today: Optional[date] = None,
    parser: Optional[ReceiptParser] = None,
    min_overall_confidence: Optional[float] = None,
    review_threshold: Optional[float] = None
) -> ReceiptAnalysis:
    """
    Extract, validate, categorize and flag one OCR result.

    Args:
        text: Recognized text, line breaks preserved
        ocr_confidence: Engine confidence for the whole text (0-100)
        today: Reference date for the date plausibility window
        parser: Parser to use (default pattern tables when omitted)
        min_overall_confidence: Validation floor (settings when omitted)
        review_threshold: Review threshold (settings when omitted)

    Returns:
        ReceiptAnalysis
    """
    parser = parser or ReceiptParser()
    if min_overall_confidence is None:
        min_overall_confidence = settings.MIN_OVERALL_CONFIDENCE
    if review_threshold is None:
        review_threshold = settings.REVIEW_CONFIDENCE_THRESHOLD

    extraction = parser.parse(text, ocr_confidence=ocr_confidence, today=today)
    errors = validate_result(extraction, min_overall_confidence=min_overall_confidence)
    category = categorize(extraction.store_name.value, extraction.line_items)
    review = compute_review_flags(extraction.confidence_scores, threshold=review_threshold)

    logger.debug(
        "Analyzed receipt: category=%s errors=%d review_required=%s",
        category.value, len(errors), review.review_required
    )

    return ReceiptAnalysis(
        extraction=extraction,
        validation_errors=tuple(errors),
        category=category,
        review=review,
    )
