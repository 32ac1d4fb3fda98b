"""
OCR API router: recognize receipt files and analyze the recognized text.
"""

from datetime import datetime, timezone
from typing import Optional
import logging
import time

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from receipt_extraction.config import settings
from receipt_extraction.models.receipt import (
    AnalysisResponse,
    AnalyzeTextRequest,
    ExtractByIdRequest,
    OCRData,
    OCRResponse,
)
from receipt_extraction.services.images import ImageFetcher, ImageFetchError
from receipt_extraction.services.ocr import OCRError, OCRResult, OCRService, is_supported
from receipt_extraction.services.pipeline import analyze_receipt

router = APIRouter(prefix="/ocr", tags=["ocr"])
logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = [
    {
        "type": "JPEG",
        "mime_types": ["image/jpeg", "image/jpg"],
        "description": "JPEG image files",
    },
    {
        "type": "PNG",
        "mime_types": ["image/png"],
        "description": "PNG image files",
    },
    {
        "type": "PDF",
        "mime_types": ["application/pdf"],
        "description": "PDF documents (text will be extracted)",
    },
]


def get_ocr_service() -> OCRService:
    return OCRService()


def get_image_fetcher() -> ImageFetcher:
    return ImageFetcher()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _bad_request(error: str, details: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error, "details": details})


def _extraction_failed(details: str, start: float) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "OCR extraction failed",
            "details": details,
            "processing_time_ms": _elapsed_ms(start),
            "timestamp": _timestamp(),
        },
    )


def _max_size_label() -> str:
    return f"{settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"


def _build_response(
    ocr_result: OCRResult,
    file_type: str,
    start: float,
    original_filename: Optional[str] = None,
    image_id: Optional[str] = None
) -> OCRResponse:
    analysis = analyze_receipt(ocr_result.text, ocr_result.confidence)
    text = ocr_result.text.strip()

    return OCRResponse(
        data=OCRData(
            text=text,
            original_filename=original_filename,
            image_id=image_id,
            file_type=file_type,
            processing_time_ms=_elapsed_ms(start),
            text_length=len(text),
            timestamp=_timestamp(),
            ocr_confidence=ocr_result.confidence,
            analysis=AnalysisResponse.from_analysis(analysis),
        )
    )


@router.post("/extract", response_model=OCRResponse)
async def extract(
    file: Optional[UploadFile] = File(None),
    ocr: OCRService = Depends(get_ocr_service)
):
    """
    Recognize an uploaded receipt and extract its fields.

    Accepts JPEG, PNG and PDF files up to MAX_UPLOAD_BYTES.
    """
    start = time.monotonic()

    if file is None:
        return _bad_request("No file provided", "Please upload a JPEG, PNG, or PDF file")

    mime_type = file.content_type or "application/octet-stream"
    if not is_supported(mime_type):
        return _bad_request(
            "Unsupported file type",
            "Only JPEG, PNG, and PDF files are supported",
        )

    # One byte past the limit is enough to reject the upload
    file_data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(file_data) > settings.MAX_UPLOAD_BYTES:
        return _bad_request("File too large", f"Maximum file size is {_max_size_label()}")

    try:
        ocr_result = await run_in_threadpool(ocr.recognize, file_data, mime_type, file.filename or "")
    except OCRError as e:
        logger.error("OCR extraction error", exc_info=True)
        return _extraction_failed(str(e), start)

    response = _build_response(ocr_result, mime_type, start, original_filename=file.filename)
    logger.info("OCR completed", extra={
        "processing_time_ms": response.data.processing_time_ms,
        "text_length": response.data.text_length,
    })
    return response


@router.post("/extract-by-id", response_model=OCRResponse)
async def extract_by_id(
    request: ExtractByIdRequest,
    ocr: OCRService = Depends(get_ocr_service),
    fetcher: ImageFetcher = Depends(get_image_fetcher)
):
    """Fetch an image from the image service by ID, then recognize it."""
    start = time.monotonic()

    if not request.image_id:
        return _bad_request(
            "No image ID provided",
            "Please provide an image_id from the image service",
        )

    try:
        image_data, content_type = await run_in_threadpool(fetcher.fetch, request.image_id)
    except ImageFetchError as e:
        logger.error("Image fetch error", extra={"image_id": request.image_id}, exc_info=True)
        return _extraction_failed(str(e), start)

    if not is_supported(content_type):
        return _bad_request(
            "Unsupported file type",
            "Only JPEG, PNG, and PDF files are supported",
        )

    try:
        ocr_result = await run_in_threadpool(ocr.recognize, image_data, content_type, request.image_id)
    except OCRError as e:
        logger.error("OCR extraction error", extra={"image_id": request.image_id}, exc_info=True)
        return _extraction_failed(str(e), start)

    response = _build_response(ocr_result, content_type, start, image_id=request.image_id)
    logger.info("OCR completed", extra={
        "image_id": request.image_id,
        "processing_time_ms": response.data.processing_time_ms,
    })
    return response


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze(request: AnalyzeTextRequest):
    """Analyze text that was already recognized by an OCR engine."""
    analysis = analyze_receipt(request.text, request.ocr_confidence)
    return AnalysisResponse.from_analysis(analysis)


@router.get("/formats")
async def formats():
    return {
        "supported_formats": SUPPORTED_FORMATS,
        "max_file_size": _max_size_label(),
        "processing_engine": "Tesseract for images, PyPDF2 text layer for PDFs",
    }
