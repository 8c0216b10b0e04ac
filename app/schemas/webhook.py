"""
app/schemas/webhook.py

Purpose: WhatsApp webhook payload schema and parser

- Validates incoming Twilio webhook form fields
- Normalizes them into an InboundMessage
- Distinguishes delivery-status callbacks from real messages
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class InboundMessage(BaseModel):
    """
    Normalized inbound WhatsApp message for internal processing.
    """
    phone: str = Field(..., description="Sender phone number in E.164 format")
    text: str = Field(default="", description="Message text content")
    name: Optional[str] = Field(default=None, description="WhatsApp profile name")
    message_id: str = Field(..., description="Unique message identifier")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    num_media: int = Field(default=0, ge=0)
    media_url: Optional[str] = None
    media_content_type: Optional[str] = None

    # Present on delivery receipts (sent, delivered, read, failed...)
    message_status: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "phone": "+971501234567",
                "text": "summary month",
                "message_id": "SM1234567890",
                "num_media": 0
            }
        }

    @property
    def is_status_update(self) -> bool:
        """A delivery receipt carries a status but no body or media."""
        return bool(self.message_status) and not self.text and self.num_media == 0

    @property
    def has_single_image(self) -> bool:
        return (
            self.num_media == 1
            and bool(self.media_url)
            and (self.media_content_type or "").lower().startswith("image/")
        )


def normalize_phone(from_number: str) -> str:
    """Strips the 'whatsapp:' channel prefix Twilio puts on addresses."""
    return from_number.replace("whatsapp:", "").strip()


def parse_twilio_message(
    from_number: str,
    body: Optional[str] = None,
    profile_name: Optional[str] = None,
    message_sid: Optional[str] = None,
    num_media: Optional[str] = None,
    media_url: Optional[str] = None,
    media_content_type: Optional[str] = None,
    message_status: Optional[str] = None,
) -> InboundMessage:
    """
    Parses Twilio WhatsApp webhook payload

    Twilio format (form data):
    - From: whatsapp:+971501234567
    - Body: message text
    - ProfileName: User's name
    - MessageSid: SMxxxx
    - NumMedia: "0".."10"
    - MediaUrl0 / MediaContentType0: first attachment
    - MessageStatus: only on status callbacks
    """
    try:
        media_count = int(num_media or 0)
    except ValueError:
        media_count = 0

    return InboundMessage(
        phone=normalize_phone(from_number),
        text=body or "",
        name=profile_name,
        message_id=message_sid or f"twilio_{datetime.utcnow().timestamp()}",
        num_media=max(media_count, 0),
        media_url=media_url,
        media_content_type=media_content_type,
        message_status=message_status,
    )
