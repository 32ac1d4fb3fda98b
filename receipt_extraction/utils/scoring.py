"""
Scoring functions for extraction candidates.

Each function returns a confidence from 0.0 (worst) to 1.0 (best).
Store name and date are first-match fields: their score depends only on
where the match was found. Amount is a best-of field: every candidate is
scored and the highest wins.
"""

from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .candidates import (
    AMOUNT_KEYWORD_BONUSES,
    Candidate,
    AmountCandidate,
    DateCandidate,
    StoreNameCandidate,
)

__all__ = [
    'STORE_NAME_SCAN_LINES', 'STORE_NAME_FALLBACK_CONFIDENCE',
    'AMOUNT_BASE_SCORE', 'AMOUNT_MAX_CONFIDENCE',
    'DATE_BASE_CONFIDENCE', 'DATE_LINE_DECAY', 'DATE_FALLBACK_CONFIDENCE',
    'score_store_name_candidate', 'score_amount_candidate', 'score_date_candidate',
    'select_best_candidate', 'select_best_amount',
]

T = TypeVar('T', bound=Candidate)

# Store name: linear decay from line 0 (1.0) to line 4 (0.76)
STORE_NAME_SCAN_LINES = 5
STORE_NAME_BASE_CONFIDENCE = 0.7
STORE_NAME_POSITION_WEIGHT = 0.3
STORE_NAME_FALLBACK_CONFIDENCE = 0.3

# Amount
AMOUNT_BASE_SCORE = 0.5
AMOUNT_TAIL_BONUS = 0.2
AMOUNT_DECIMAL_BONUS = 0.1
AMOUNT_MAX_CONFIDENCE = 0.95

# Date
DATE_BASE_CONFIDENCE = 0.8
DATE_LINE_DECAY = 0.03
DATE_FALLBACK_CONFIDENCE = 0.1


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def score_store_name_candidate(candidate: StoreNameCandidate) -> float:
    """
    Score a store name match by line position.

    0.7 + 0.3 * (5 - line) / 5 for pattern matches; fixed 0.3 for the
    fallback rule.
    """
    if candidate.is_fallback:
        return STORE_NAME_FALLBACK_CONFIDENCE

    remaining = STORE_NAME_SCAN_LINES - candidate.line_position
    return _clamp(
        STORE_NAME_BASE_CONFIDENCE
        + STORE_NAME_POSITION_WEIGHT * remaining / STORE_NAME_SCAN_LINES
    )


def score_amount_candidate(candidate: AmountCandidate) -> float:
    """
    Score amount candidate based on line context.

    Scoring factors (additive):
    - Base: 0.5
    - Keyword bonuses: +0.3 "total", +0.2 "amount", +0.15 "balance"
    - Tail bonus: +0.2 when the line lies past 60% of the receipt
    - Decimal bonus: +0.1 when the numeral has a decimal point

    Capped at 0.95.
    """
    score = AMOUNT_BASE_SCORE

    bonuses = dict(AMOUNT_KEYWORD_BONUSES)
    for keyword in candidate.keywords:
        score += bonuses[keyword]

    if candidate.in_receipt_tail:
        score += AMOUNT_TAIL_BONUS

    if candidate.has_decimal_point:
        score += AMOUNT_DECIMAL_BONUS

    return _clamp(min(AMOUNT_MAX_CONFIDENCE, score))


def score_date_candidate(candidate: DateCandidate) -> float:
    """0.8 minus 0.03 per line of distance from the top."""
    return _clamp(DATE_BASE_CONFIDENCE - DATE_LINE_DECAY * candidate.line_position)


def select_best_candidate(
    candidates: Sequence[T],
    score_fn: Callable[[T], float]
) -> Optional[Tuple[T, float]]:
    """
    Select the highest-scoring candidate.

    Ties keep the candidate that came first in ``candidates``.

    Returns:
        (candidate, score) or None when there are no candidates
    """
    best: Optional[Tuple[T, float]] = None

    for candidate in candidates:
        score = score_fn(candidate)
        if best is None or score > best[1]:
            best = (candidate, score)

    return best


def select_best_amount(
    candidates: List[AmountCandidate]
) -> Optional[Tuple[AmountCandidate, float]]:
    """Select best amount candidate, returning (candidate, score)."""
    return select_best_candidate(candidates, score_amount_candidate)
