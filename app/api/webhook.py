"""
app/api/webhook.py

Purpose: WhatsApp webhook endpoint

- Receives inbound messages and status callbacks from Twilio (form data)
- Normalizes the payload into an InboundMessage
- Passes control to the flow dispatcher
- Acknowledges quickly with JSON so Twilio does not retry
"""

from fastapi import APIRouter, Form
from typing import Optional

from app.core.exceptions import ReimburziError, ValidationError
from app.core.logging import get_logger
from app.flow.dispatcher import dispatch_message
from app.schemas.response import WebhookAck
from app.schemas.webhook import parse_twilio_message

logger = get_logger(__name__)
router = APIRouter()


@router.post("/webhook", response_model=WebhookAck)
async def webhook_handler(
    From: Optional[str] = Form(None),
    Body: Optional[str] = Form(None),
    ProfileName: Optional[str] = Form(None),
    MessageSid: Optional[str] = Form(None),
    NumMedia: Optional[str] = Form(None),
    MediaUrl0: Optional[str] = Form(None),
    MediaContentType0: Optional[str] = Form(None),
    MessageStatus: Optional[str] = Form(None),
):
    """
    Twilio WhatsApp webhook.

    Failures inside the conversation are answered in chat and still
    acknowledged here; only errors that escape the dispatcher become a 500.
    """
    if not From:
        raise ValidationError("Missing sender (From)")

    message = parse_twilio_message(
        from_number=From,
        body=Body,
        profile_name=ProfileName,
        message_sid=MessageSid,
        num_media=NumMedia,
        media_url=MediaUrl0,
        media_content_type=MediaContentType0,
        message_status=MessageStatus,
    )

    logger.info(
        f"📱 Webhook received from {message.phone}: "
        f"text={message.text[:50]!r}, media={message.num_media}"
    )

    try:
        await dispatch_message(message)
    except Exception as e:
        logger.error(f"Webhook error: {e}", exc_info=True)
        raise ReimburziError(
            "Failed to process webhook",
            code="WEBHOOK_ERROR",
            status_code=500,
            details=str(e),
        ) from e

    return WebhookAck()


@router.get("/webhook")
async def webhook_verification():
    """
    Webhook verification endpoint (for provider console checks)
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
