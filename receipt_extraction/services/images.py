"""
Client for the image service that stores uploaded receipt images.
"""

import logging
from typing import Optional, Tuple

import requests

from receipt_extraction.config import settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'image/jpeg'


class ImageFetchError(Exception):
    """Raised when an image cannot be fetched from the image service."""


class ImageFetcher:
    """Fetches raw image bytes by ID from the image service."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.IMAGE_SERVICE_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.IMAGE_FETCH_TIMEOUT_SECONDS

    def image_url(self, image_id: str) -> str:
        return f"{self.base_url}/image/{image_id}"

    def fetch(self, image_id: str) -> Tuple[bytes, str]:
        """
        Download an image.

        Args:
            image_id: ID assigned by the image service

        Returns:
            (image bytes, content type without parameters)

        Raises:
            ImageFetchError: on connection failure or a non-2xx response
        """
        url = self.image_url(image_id)
        logger.info("Fetching image", extra={"image_id": image_id, "url": url})

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImageFetchError(f"Failed to fetch image: {e}") from e

        if not response.ok:
            raise ImageFetchError(
                f"Failed to fetch image: {response.status_code} {response.reason}"
            )

        content_type = response.headers.get('content-type') or DEFAULT_CONTENT_TYPE
        content_type = content_type.split(';')[0].strip().lower()

        return response.content, content_type
