"""
app/flow/handlers/receipt.py

Handles: receipt photos from registered users

extraction -> structured parsing -> persistence -> confirmation
"""

from typing import Any, Dict, Optional

from app.core.logging import get_logger, LogContext
from app.schemas.webhook import InboundMessage
from app.services.expense_service import create_expense
from app.services.ocr_service import get_ocr_service
from app.services.parser_service import get_receipt_parser
from utils.constants import RECEIPT_FAILED_MESSAGE, RECEIPT_SAVED_MESSAGE

logger = get_logger(__name__)


async def handle_receipt(user: Dict[str, Any], message: InboundMessage) -> Optional[Dict[str, Any]]:
    """
    Runs the receipt pipeline for one image.

    Returns:
        Confirmation or failure response; None when no text was found
        on the image (nothing is saved and nothing is sent)
    """
    with LogContext(phone=message.phone, user_id=user["id"]):
        try:
            text = await get_ocr_service().extract_text(message.media_url)

            if not text:
                logger.info("Receipt image had no readable text, skipping")
                return None

            parsed = await get_receipt_parser().parse(text)

            expense = await create_expense(
                user["id"],
                {
                    "image_url": message.media_url,
                    "merchant": parsed.merchant,
                    "amount": parsed.amount,
                    "date": parsed.date,
                    "category": parsed.category,
                    "currency": parsed.currency,
                    "language": parsed.language,
                },
            )

        except Exception as e:
            logger.error(f"Receipt pipeline failed: {e}", exc_info=True)
            return {"message": RECEIPT_FAILED_MESSAGE}

        return {
            "message": RECEIPT_SAVED_MESSAGE.format(
                merchant=expense["merchant"],
                amount=expense["amount"],
                currency=expense["currency"],
                category=expense["category"],
            ),
            "expense_id": expense["id"],
        }
