"""
app/flow/handlers/commands.py

Handles: text messages from registered users

- "summary" / "summary month" / "summary year" -> spending summary
- anything else -> help text
"""

from typing import Any, Dict

from app.core.logging import get_logger, LogContext
from app.schemas.webhook import InboundMessage
from app.services.summary_service import get_summary_generator
from utils.constants import HELP_MESSAGE, SUMMARY_FAILED_MESSAGE
from utils.validation_utils import detect_summary_period, is_summary_request

logger = get_logger(__name__)


async def handle_summary(user: Dict[str, Any], message: InboundMessage) -> Dict[str, Any]:
    period = detect_summary_period(message.text)

    with LogContext(user_id=user["id"], period=period):
        try:
            summary = await get_summary_generator().summarize(user["id"], period)
        except Exception as e:
            logger.error(f"Summary generation failed: {e}", exc_info=True)
            return {"message": SUMMARY_FAILED_MESSAGE}

        return {"message": summary.narrative, "period": period}


async def handle_text_command(user: Dict[str, Any], message: InboundMessage) -> Dict[str, Any]:
    if is_summary_request(message.text):
        return await handle_summary(user, message)

    return {"message": HELP_MESSAGE.format(name=user["name"])}
