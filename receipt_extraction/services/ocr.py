"""
OCR service for extracting text and confidence from receipt images and PDFs.

The recognized text keeps its line breaks; the parser depends on them.
"""

import io
import logging
from dataclasses import dataclass
from typing import List

import pytesseract
from PIL import Image, UnidentifiedImageError
from pdf2image import convert_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)
import PyPDF2
from PyPDF2.errors import PyPdfError

from receipt_extraction.config import settings

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = 'application/pdf'
IMAGE_MIME_TYPES = ('image/jpeg', 'image/jpg', 'image/png')
SUPPORTED_MIME_TYPES = IMAGE_MIME_TYPES + (PDF_MIME_TYPE,)

# Below this many characters a PDF text layer is treated as a scanned image
MIN_PDF_TEXT_LAYER_CHARS = 50

TESSERACT_CONFIG = r'--oem 3 --psm 6'

# Oversized images raise DecompressionBombError, which is not an OSError
IMAGE_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError)
PDF_RASTERIZE_ERRORS = (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
    Image.DecompressionBombError,
    OSError,
    ValueError,
)


class OCRError(Exception):
    """Raised when text cannot be recognized from the supplied file."""


class UnsupportedFileTypeError(OCRError):
    """Raised for MIME types the OCR service does not handle."""


@dataclass(frozen=True)
class OCRResult:
    """Recognized text plus the engine's overall confidence (0-100)."""
    text: str
    confidence: float


def is_supported(mime_type: str) -> bool:
    return mime_type == PDF_MIME_TYPE or mime_type in IMAGE_MIME_TYPES


class OCRService:
    """Service for extracting text from receipt files."""

    def __init__(self):
        """Initialize OCR service with Tesseract configuration."""
        pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD
        self.language = settings.OCR_LANGUAGE
        self.timeout = settings.OCR_TIMEOUT_SECONDS

    def recognize(self, file_data: bytes, mime_type: str, filename: str = "") -> OCRResult:
        """
        Extract text from a file (dispatches on MIME type).

        Args:
            file_data: Raw file bytes
            mime_type: MIME type of the file
            filename: Optional filename, used for logging only

        Returns:
            OCRResult

        Raises:
            UnsupportedFileTypeError: for anything but JPEG, PNG or PDF
            OCRError: when the engine fails or the file cannot be decoded
        """
        logger.info("Processing file", extra={"upload_name": filename, "mime_type": mime_type})

        if mime_type == PDF_MIME_TYPE:
            return self.recognize_pdf(file_data)
        if mime_type in IMAGE_MIME_TYPES:
            return self.recognize_image(file_data)

        raise UnsupportedFileTypeError(f"Unsupported file type: {mime_type}")

    def recognize_image(self, image_data: bytes) -> OCRResult:
        """
        Extract text from an image using Tesseract OCR.

        The image is handed to the engine as decoded; no preprocessing.
        """
        try:
            image = Image.open(io.BytesIO(image_data))
            image.load()
        except IMAGE_DECODE_ERRORS as e:
            logger.warning("Image could not be decoded", exc_info=True)
            raise OCRError("Failed to extract text from image") from e

        return self._recognize_pil_image(image)

    def recognize_pdf(self, pdf_data: bytes) -> OCRResult:
        """
        Extract text from a PDF file.

        Uses the embedded text layer when it carries enough text, otherwise
        rasterizes the pages and runs OCR on each.
        """
        text = self._extract_pdf_text_direct(pdf_data)
        if len(text.strip()) >= MIN_PDF_TEXT_LAYER_CHARS:
            return OCRResult(text=text.strip(), confidence=settings.PDF_TEXT_LAYER_CONFIDENCE)

        logger.info("PDF appears to be image-based, using OCR")
        try:
            pages = convert_from_bytes(pdf_data)
        except PDF_RASTERIZE_ERRORS as e:
            logger.warning("PDF could not be rasterized", exc_info=True)
            raise OCRError("Failed to extract text from PDF") from e

        results = [self._recognize_pil_image(page) for page in pages]
        if not results:
            return OCRResult(text="", confidence=0.0)

        return OCRResult(
            text="\n".join(result.text for result in results).strip(),
            confidence=sum(result.confidence for result in results) / len(results),
        )

    def _extract_pdf_text_direct(self, pdf_data: bytes) -> str:
        try:
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(pdf_data))
            return "\n".join((page.extract_text() or "") for page in pdf_reader.pages)
        except (PyPdfError, ValueError, OSError):
            logger.warning("Direct PDF text extraction failed", exc_info=True)
            return ""

    def _recognize_pil_image(self, image: Image.Image) -> OCRResult:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=TESSERACT_CONFIG,
                output_type=pytesseract.Output.DICT,
                timeout=self.timeout,
            )
        except (
            pytesseract.TesseractError,
            pytesseract.TesseractNotFoundError,
            Image.DecompressionBombError,
            RuntimeError,
            OSError,
        ) as e:
            # pytesseract signals a timeout with a bare RuntimeError
            logger.error("Tesseract OCR error", exc_info=True)
            raise OCRError("Failed to extract text from image") from e

        return OCRResult(text=words_to_text(data), confidence=mean_confidence(data.get('conf', [])))


def words_to_text(data: dict) -> str:
    """
    Rebuild line-broken text from Tesseract ``image_to_data`` output.

    Words sharing (block, paragraph, line) numbers are joined with spaces.
    """
    lines: List[str] = []
    current_key = None
    current_words: List[str] = []

    for idx, word in enumerate(data.get('text', [])):
        key = (data['block_num'][idx], data['par_num'][idx], data['line_num'][idx])
        if key != current_key:
            if current_words:
                lines.append(' '.join(current_words))
            current_key = key
            current_words = []
        if word and word.strip():
            current_words.append(word.strip())

    if current_words:
        lines.append(' '.join(current_words))

    return '\n'.join(lines).strip()


def mean_confidence(confidences) -> float:
    """Mean of the non-negative word confidences (Tesseract uses -1 for non-words)."""
    values = []
    for conf in confidences:
        try:
            value = float(conf)
        except (TypeError, ValueError):
            continue
        if value >= 0:
            values.append(value)

    if not values:
        return 0.0
    return sum(values) / len(values)
