"""
Core domain types produced by the receipt extraction pipeline.

All records are frozen: an ExtractionResult is built once per OCR invocation
and never mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class ScoredField(Generic[T]):
    """An extracted value paired with its confidence.

    ``value is None`` (with confidence 0.0) means the field was not found.
    """
    value: Optional[T] = None
    confidence: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'confidence', max(0.0, min(1.0, float(self.confidence))))

    @property
    def found(self) -> bool:
        return self.value is not None

    @classmethod
    def missing(cls) -> 'ScoredField[T]':
        return cls(value=None, confidence=0.0)


@dataclass(frozen=True)
class LineItem:
    """A purchased item. ``price`` always carries exactly two fraction digits."""
    description: str
    price: str


@dataclass(frozen=True)
class ConfidenceScores:
    store_name: float
    amount: float
    date: float
    overall: float

    def as_dict(self) -> dict:
        return {
            'store_name': self.store_name,
            'amount': self.amount,
            'date': self.date,
            'overall': self.overall,
        }


def overall_from_ocr(ocr_confidence: Optional[float]) -> float:
    """Map the OCR engine's 0-100 confidence linearly into [0, 1]."""
    if ocr_confidence is None:
        return 0.0
    try:
        value = float(ocr_confidence) / 100.0
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class ExtractionResult:
    """Structured receipt data extracted from one OCR invocation."""
    store_name: ScoredField[str]
    amount: ScoredField[Decimal]
    date: ScoredField[date]
    line_items: tuple[LineItem, ...] = ()
    ocr_confidence: float = 0.0
    confidence_scores: ConfidenceScores = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'line_items', tuple(self.line_items))
        object.__setattr__(self, 'confidence_scores', ConfidenceScores(
            store_name=self.store_name.confidence,
            amount=self.amount.confidence,
            date=self.date.confidence,
            overall=overall_from_ocr(self.ocr_confidence),
        ))


class ValidationError(str, Enum):
    """Reasons an assembled result fails minimum acceptability."""
    MISSING_STORE_NAME = 'missing_store_name'
    INVALID_AMOUNT = 'invalid_amount'
    INVALID_DATE = 'invalid_date'
    LOW_CONFIDENCE = 'low_confidence'


class Category(str, Enum):
    PHARMACY = 'Pharmacy'
    DENTAL = 'Dental'
    VISION = 'Vision'
    DOCTOR_VISIT = 'DoctorVisit'
    MEDICAL_DEVICE = 'MedicalDevice'
    OTHER = 'Other'


@dataclass(frozen=True)
class ReviewFlags:
    review_required: bool
    fields_to_verify: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReceiptAnalysis:
    """Everything the core hands back to the transport layer."""
    extraction: ExtractionResult
    validation_errors: tuple[ValidationError, ...]
    category: Category
    review: ReviewFlags
