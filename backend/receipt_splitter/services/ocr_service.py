"""
OCR Service for extracting text from receipt photos.

Sends base64 images to the Google Cloud Vision ``images:annotate`` endpoint
and returns the full text annotation. Single attempt, no retries.
"""

import base64
import binascii
import logging
import re
from typing import Any, Dict

import httpx

from receipt_splitter.core.exceptions import InternalError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = re.compile(r"^data:image/[^;,]*;base64,", re.IGNORECASE)

# OCR failures are reported to the client as a bad upload
OCR_ERROR_STATUS = 400


def strip_data_url(image: str) -> str:
    """Drop a leading ``data:image/...;base64,`` prefix if present."""
    image = image.strip()
    match = DATA_URL_PREFIX.match(image)
    if match:
        return image[match.end():]
    return image


def decode_base64(image_b64: str) -> bytes:
    """Strictly decode base64 image data or raise ValidationError."""
    if not image_b64:
        raise ValidationError("Invalid Base64 image data")
    try:
        data = base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid Base64 image data")
    if not data:
        raise ValidationError("Invalid Base64 image data")
    return data


def build_annotate_request(image_b64: str) -> Dict[str, Any]:
    """Request body asking for a single TEXT_DETECTION pass."""
    return {
        "requests": [
            {
                "image": {"content": image_b64},
                "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
            }
        ]
    }


class VisionOCRClient:
    """Thin client for the Cloud Vision text detection API."""

    def __init__(
        self,
        http_client: httpx.Client,
        api_key: str,
        endpoint: str = "https://vision.googleapis.com/v1/images:annotate",
    ):
        self.http_client = http_client
        self.api_key = api_key
        self.endpoint = endpoint

    def extract_text(self, image: str) -> str:
        """
        Extract text from a base64 (or data URL) encoded receipt image.

        Args:
            image: Base64 string, optionally prefixed with ``data:image/...;base64,``

        Returns:
            Concatenated full-text annotation
        """
        image_b64 = strip_data_url(image)
        decode_base64(image_b64)

        if not self.api_key:
            raise InternalError("OCR service not configured: GOOGLE_API_KEY missing")

        try:
            response = self.http_client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=build_annotate_request(image_b64),
            )
        except httpx.HTTPError as e:
            logger.error(f"Vision API request failed: {e}")
            raise UpstreamError("Vision API request failed", status_code=OCR_ERROR_STATUS)

        if response.status_code != httpx.codes.OK:
            logger.error(
                f"Vision API returned {response.status_code}: {response.text[:200]}"
            )
            raise UpstreamError(
                f"Vision API error: HTTP {response.status_code}",
                status_code=OCR_ERROR_STATUS,
            )

        try:
            result = response.json()
        except ValueError:
            raise UpstreamError("Invalid Vision API response", status_code=OCR_ERROR_STATUS)

        text = self._full_text(result)
        logger.info(f"Vision API extracted {len(text)} characters")
        return text

    @staticmethod
    def _full_text(result: Any) -> str:
        responses = result.get("responses") if isinstance(result, dict) else None
        if not isinstance(responses, list) or not responses:
            raise UpstreamError("Invalid Vision API response", status_code=OCR_ERROR_STATUS)

        first = responses[0]
        if not isinstance(first, dict):
            raise UpstreamError("Invalid Vision API response", status_code=OCR_ERROR_STATUS)

        error = first.get("error")
        if error:
            if isinstance(error, dict):
                error = error.get("message", "unknown error")
            raise UpstreamError(f"Vision API error: {error}", status_code=OCR_ERROR_STATUS)

        annotation = first.get("fullTextAnnotation")
        text = annotation.get("text") if isinstance(annotation, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise UpstreamError("No text detected in receipt image", status_code=OCR_ERROR_STATUS)
        return text
