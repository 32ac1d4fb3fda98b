"""
Pydantic models for OCR/extraction API requests and responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List

from receipt_extraction.models.extraction import ReceiptAnalysis


class LineItemResponse(BaseModel):
    description: str
    price: str  # Two fraction digits, e.g. "12.99"


class ConfidenceScoresResponse(BaseModel):
    store_name: float
    amount: float
    date: float
    overall: float


class ExtractionResponse(BaseModel):
    """Extracted receipt fields. Missing values are null with confidence 0."""
    store_name: Optional[str] = None
    amount: Optional[str] = None  # Decimal as string (e.g. "14.00")
    date: Optional[str] = None  # YYYY-MM-DD
    line_items: List[LineItemResponse] = []
    confidence_scores: ConfidenceScoresResponse


class ReviewResponse(BaseModel):
    review_required: bool
    fields_to_verify: List[str] = []


class AnalysisResponse(BaseModel):
    """Model for the analysis of one OCR result."""
    extraction: ExtractionResponse
    validation_errors: List[str] = []
    category: str
    review: ReviewResponse

    @classmethod
    def from_analysis(cls, analysis: ReceiptAnalysis) -> "AnalysisResponse":
        result = analysis.extraction
        amount = result.amount.value
        return cls(
            extraction=ExtractionResponse(
                store_name=result.store_name.value,
                amount=f"{amount:.2f}" if amount is not None else None,
                date=result.date.value.isoformat() if result.date.value is not None else None,
                line_items=[
                    LineItemResponse(description=item.description, price=item.price)
                    for item in result.line_items
                ],
                confidence_scores=ConfidenceScoresResponse(**result.confidence_scores.as_dict()),
            ),
            validation_errors=[error.value for error in analysis.validation_errors],
            category=analysis.category.value,
            review=ReviewResponse(
                review_required=analysis.review.review_required,
                fields_to_verify=list(analysis.review.fields_to_verify),
            ),
        )


class AnalyzeTextRequest(BaseModel):
    """Model for analyzing already-recognized text."""
    text: str
    ocr_confidence: float = Field(100.0, ge=0, le=100)


class ExtractByIdRequest(BaseModel):
    image_id: Optional[str] = None


class OCRData(BaseModel):
    """Payload of a successful OCR extraction."""
    text: str
    original_filename: Optional[str] = None
    image_id: Optional[str] = None
    file_type: str
    processing_time_ms: int
    text_length: int
    timestamp: str
    ocr_confidence: float
    analysis: AnalysisResponse


class OCRResponse(BaseModel):
    success: bool = True
    message: str = "Text extracted successfully"
    data: OCRData
