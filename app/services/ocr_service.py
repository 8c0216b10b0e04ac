"""
app/services/ocr_service.py

Purpose: Receipt text extraction

- Downloads the receipt photo from Twilio
- Runs Google Cloud Vision text detection on it
- Returns the full detected text, or "" when nothing was found
"""

import asyncio
from typing import Optional

from google.cloud import vision
from google.oauth2 import service_account

from app.core.config import settings
from app.core.exceptions import TextExtractionError
from app.core.logging import get_logger
from app.services.twilio_service import TwilioService, twilio_service

logger = get_logger(__name__)


class OCRService:
    """Text extraction using the Google Cloud Vision API."""

    def __init__(
        self,
        media_client: Optional[TwilioService] = None,
        vision_client: Optional[vision.ImageAnnotatorClient] = None,
    ):
        self._media_client = media_client or twilio_service
        self._vision_client = vision_client

    @property
    def vision_client(self) -> vision.ImageAnnotatorClient:
        # Built lazily so the app can start without Google credentials
        if self._vision_client is None:
            credentials_path = settings.GOOGLE_APPLICATION_CREDENTIALS
            if credentials_path:
                credentials = service_account.Credentials.from_service_account_file(credentials_path)
                self._vision_client = vision.ImageAnnotatorClient(credentials=credentials)
            else:
                self._vision_client = vision.ImageAnnotatorClient()
            logger.info("Google Vision client initialized")
        return self._vision_client

    def _detect_text(self, image_data: bytes) -> str:
        image = vision.Image(content=image_data)
        response = self.vision_client.text_detection(image=image)

        if response.error.message:
            raise TextExtractionError("Vision API error", details=response.error.message)

        annotations = response.text_annotations
        if not annotations:
            return ""

        # The first annotation holds the entire text block
        return annotations[0].description or ""

    async def extract_text(self, media_url: str) -> str:
        """
        Extracts text from a receipt image.

        Args:
            media_url: Twilio media URL of the image

        Returns:
            Extracted text, "" if no text was detected

        Raises:
            TextExtractionError: If download or OCR fails
        """
        logger.info(f"🔍 Extracting text from {media_url}")

        try:
            image_data = await self._media_client.download_media(media_url)
        except Exception as e:
            logger.error(f"Failed to download media: {e}")
            raise TextExtractionError("Could not download receipt image", details=str(e)) from e

        try:
            text = await asyncio.to_thread(self._detect_text, image_data)
        except TextExtractionError:
            raise
        except Exception as e:
            logger.error(f"Vision text detection failed: {e}", exc_info=True)
            raise TextExtractionError("Text detection failed", details=str(e)) from e

        if not text.strip():
            logger.info("No text detected in the image")
            return ""

        logger.info(f"Extracted {len(text)} characters of receipt text")
        return text


_ocr_service: Optional[OCRService] = None


def get_ocr_service() -> OCRService:
    global _ocr_service
    if _ocr_service is None:
        _ocr_service = OCRService()
    return _ocr_service
