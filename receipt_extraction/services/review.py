"""
Review routing: decide which extracted fields a human should confirm.
"""

from receipt_extraction.models.extraction import ConfidenceScores, ReviewFlags

DEFAULT_REVIEW_THRESHOLD = 0.7

REVIEWABLE_FIELDS = ('store_name', 'amount', 'date')


def compute_review_flags(
    scores: ConfidenceScores,
    threshold: float = DEFAULT_REVIEW_THRESHOLD
) -> ReviewFlags:
    """
    Flag the receipt for review when overall confidence is below ``threshold``.

    ``fields_to_verify`` lists every field whose own confidence is below the
    same threshold, always in store_name, amount, date order. A date that
    fell back to today (confidence 0.1) is therefore always listed.
    """
    fields_to_verify = tuple(
        name for name in REVIEWABLE_FIELDS
        if getattr(scores, name) < threshold
    )
    return ReviewFlags(
        review_required=scores.overall < threshold,
        fields_to_verify=fields_to_verify,
    )
