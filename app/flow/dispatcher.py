"""
app/flow/dispatcher.py

Purpose: Central message dispatcher

- Receives normalized messages from the webhook
- Classifies them (status receipt, join, onboarding, receipt, command)
- Routes to the matching handler; first match wins
- Sends the handler's reply via Twilio
"""

from typing import Dict, Any, Optional

from app.core.exceptions import MessageSendError
from app.core.logging import get_logger, LogContext
from app.flow.handlers.commands import handle_text_command
from app.flow.handlers.onboarding import handle_join, handle_onboarding_step
from app.flow.handlers.receipt import handle_receipt
from app.schemas.webhook import InboundMessage
from app.services.onboarding_service import OnboardingStore, onboarding_store
from app.services.twilio_service import twilio_service
from app.services.user_service import get_user_by_phone
from utils.constants import GENERIC_ERROR_MESSAGE, JOIN_FIRST_MESSAGE
from utils.validation_utils import is_join_request

logger = get_logger(__name__)


async def dispatch_message(
    message: InboundMessage,
    store: Optional[OnboardingStore] = None,
) -> Optional[Dict[str, Any]]:
    """
    Main dispatcher for incoming WhatsApp messages

    Args:
        message: Normalized inbound message
        store: Onboarding store (defaults to the process-wide one)

    Returns:
        The response that was sent, or None when nothing was sent

    Raises:
        MessageSendError: If even the apology message cannot be delivered
    """
    if store is None:
        store = onboarding_store

    if message.is_status_update:
        logger.debug(f"Delivery status {message.message_status} for {message.message_id}")
        return None

    with LogContext(phone=message.phone):
        logger.info(f"📨 Dispatching message {message.message_id}")

        try:
            response = await route_message(message, store)
        except MessageSendError:
            raise
        except Exception as e:
            logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
            response = {"message": GENERIC_ERROR_MESSAGE}

        if response:
            await send_response(message.phone, response)
        return response


async def route_message(message: InboundMessage, store: OnboardingStore) -> Optional[Dict[str, Any]]:
    """
    Picks the handler for a message, in priority order.
    """
    # Join and onboarding steps read-modify-write the sender's state
    async with store.lock(message.phone):
        if is_join_request(message.text):
            return await handle_join(message, store)

        state = store.get(message.phone)
        if state is not None:
            return await handle_onboarding_step(message, state, store)

    user = await get_user_by_phone(message.phone)
    if not user:
        logger.info("Unknown sender, asking to join")
        return {"message": JOIN_FIRST_MESSAGE}

    if message.has_single_image:
        return await handle_receipt(user, message)

    return await handle_text_command(user, message)


async def send_response(to_phone: str, response: Dict[str, Any]):
    """
    Sends a handler response via Twilio

    Args:
        to_phone: Recipient phone
        response: Handler response dict with a "message" key
    """
    message_text = response.get("message", "")

    if not message_text:
        logger.warning("⚠️ Empty response message")
        return

    logger.info(f"📤 Sending response to {to_phone}: {message_text[:80]}")

    result = await twilio_service.send_message(to_phone=to_phone, message=message_text)
    response["message_sid"] = result.get("message_sid")
