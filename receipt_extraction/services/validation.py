"""
Minimum-acceptability checks for an assembled extraction result.

Validation reports problems as data; it never raises.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import List

from receipt_extraction.models.extraction import ExtractionResult, ValidationError
from receipt_extraction.utils.dates import is_strict_iso_date

logger = logging.getLogger(__name__)

DEFAULT_MIN_OVERALL_CONFIDENCE = 0.5
MIN_STORE_NAME_LENGTH = 2


def _amount_is_valid(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return False
    return amount.is_finite() and amount > 0


def validate_result(
    result: ExtractionResult,
    min_overall_confidence: float = DEFAULT_MIN_OVERALL_CONFIDENCE
) -> List[ValidationError]:
    """
    Check an extraction result against minimum acceptability rules.

    Args:
        result: Assembled extraction result
        min_overall_confidence: Floor for the OCR-derived overall confidence

    Returns:
        Validation errors in a fixed order (store name, amount, date,
        confidence); empty when the result is acceptable
    """
    errors: List[ValidationError] = []

    store_name = result.store_name.value
    if not store_name or len(store_name) < MIN_STORE_NAME_LENGTH:
        errors.append(ValidationError.MISSING_STORE_NAME)

    if not _amount_is_valid(result.amount.value):
        errors.append(ValidationError.INVALID_AMOUNT)

    if not is_strict_iso_date(result.date.value):
        errors.append(ValidationError.INVALID_DATE)

    if result.confidence_scores.overall < min_overall_confidence:
        errors.append(ValidationError.LOW_CONFIDENCE)

    if errors:
        logger.debug("Validation found %d problem(s): %s", len(errors), [e.value for e in errors])

    return errors
