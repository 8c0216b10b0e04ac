"""
app/services/twilio_service.py

Purpose: Twilio WhatsApp message sending

- Sends WhatsApp text messages via the Twilio REST API
- Retries a bounded number of times when Twilio rate-limits us
- Downloads inbound media (receipt photos) with account credentials
"""

import asyncio
import httpx
from typing import Dict, Any, Optional
from app.core.config import settings
from app.core.exceptions import MessageSendError
from app.core.logging import get_logger

logger = get_logger(__name__)

# 20429: too many requests, 63038: daily messages limit reached
RATE_LIMIT_ERROR_CODES = {20429, 63038}


class TwilioService:
    """Service for sending WhatsApp messages via Twilio"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        whatsapp_number: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.whatsapp_number = whatsapp_number or settings.TWILIO_WHATSAPP_NUMBER
        self.max_retries = settings.TWILIO_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.TWILIO_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.base_url = f"{settings.TWILIO_API_BASE_URL}/Accounts/{self.account_sid}"
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self.account_sid or "", self.auth_token or ""),
            timeout=timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        try:
            code = response.json().get("code")
        except ValueError:
            return False
        return code in RATE_LIMIT_ERROR_CODES

    async def send_message(self, to_phone: str, message: str) -> Dict[str, Any]:
        """
        Sends a WhatsApp message via Twilio

        Args:
            to_phone: Recipient phone (+971501234567)
            message: Message text

        Returns:
            {"success": True, "message_sid": "SMxxx...", "status": "queued"}

        Raises:
            MessageSendError: On API errors, timeouts, or when rate limiting
                persists past the retry budget
        """
        if not self.is_configured():
            raise MessageSendError("Twilio is not configured")

        if not to_phone.startswith("whatsapp:"):
            to_phone = f"whatsapp:{to_phone}"

        sender = self.whatsapp_number
        if not sender.startswith("whatsapp:"):
            sender = f"whatsapp:{sender}"

        url = f"{self.base_url}/Messages.json"
        data = {"From": sender, "To": to_phone, "Body": message}

        attempt = 0
        async with self._client(settings.TWILIO_TIMEOUT) as client:
            while True:
                logger.info(f"📤 Sending Twilio message to {to_phone} (attempt {attempt + 1})")
                try:
                    response = await client.post(url, data=data)
                except httpx.TimeoutException as e:
                    logger.error("Twilio API timeout")
                    raise MessageSendError("Twilio API timeout") from e
                except httpx.HTTPError as e:
                    logger.error(f"Twilio transport error: {e}")
                    raise MessageSendError("Twilio API unreachable", details=str(e)) from e

                if response.status_code in (200, 201):
                    result = response.json()
                    logger.info(f"✅ Message sent: SID={result.get('sid')}")
                    return {
                        "success": True,
                        "message_sid": result.get("sid"),
                        "status": result.get("status"),
                    }

                if self._is_rate_limited(response) and attempt < self.max_retries:
                    attempt += 1
                    logger.warning(
                        f"Twilio rate limit hit, retrying in {self.retry_delay}s "
                        f"({attempt}/{self.max_retries})"
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue

                logger.error(f"❌ Twilio API error: {response.status_code} - {response.text}")
                raise MessageSendError(
                    f"Twilio API error: {response.status_code}",
                    details=response.text,
                    rate_limited=self._is_rate_limited(response),
                )

    async def download_media(self, media_url: str) -> bytes:
        """
        Downloads an inbound media attachment.

        Twilio media URLs require basic auth and redirect to storage.
        """
        async with self._client(settings.MEDIA_DOWNLOAD_TIMEOUT) as client:
            response = await client.get(media_url)
            response.raise_for_status()
            return response.content

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(
            self.account_sid
            and self.auth_token
            and self.whatsapp_number
        )


# Singleton instance
twilio_service = TwilioService()
