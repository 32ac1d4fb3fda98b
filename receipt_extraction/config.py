from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "OCR Microservice"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 5002

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Image service (source of /ocr/extract-by-id images)
    IMAGE_SERVICE_URL: str = "http://localhost:5001"
    IMAGE_FETCH_TIMEOUT_SECONDS: float = 15.0

    # OCR
    TESSERACT_CMD: str = "tesseract"
    OCR_LANGUAGE: str = "eng"
    OCR_TIMEOUT_SECONDS: float = 30.0
    PDF_TEXT_LAYER_CONFIDENCE: float = 100.0

    # Uploads
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Extraction thresholds
    MIN_OVERALL_CONFIDENCE: float = 0.5
    REVIEW_CONFIDENCE_THRESHOLD: float = 0.7

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
