"""
app/flow/handlers/onboarding.py

Handles: "join" and the name/email onboarding steps

- Welcomes back registered users
- Starts onboarding for unknown phone numbers
- Collects the name, then a valid email, then registers the user
"""

from typing import Any, Dict, Optional

from app.core.logging import get_logger, LogContext
from app.flow.states import OnboardingStep
from app.schemas.webhook import InboundMessage
from app.services.onboarding_service import OnboardingState, OnboardingStore
from app.services.user_service import create_user, get_user_by_phone
from utils.constants import (
    ASK_EMAIL_MESSAGE,
    ASK_NAME_AGAIN_MESSAGE,
    INVALID_EMAIL_MESSAGE,
    ONBOARDING_COMPLETE_MESSAGE,
    WELCOME_BACK_MESSAGE,
    WELCOME_NEW_USER_MESSAGE,
)
from utils.validation_utils import validate_email

logger = get_logger(__name__)


async def handle_join(message: InboundMessage, store: OnboardingStore) -> Dict[str, Any]:
    """
    Handles a "join" message. Caller holds store.lock(message.phone).

    Registered users get a welcome-back; anyone else starts (or restarts)
    onboarding at awaiting_name. Never creates a user directly.
    """
    with LogContext(phone=message.phone):
        user = await get_user_by_phone(message.phone)

        if user:
            logger.info("Registered user sent join")
            return {"message": WELCOME_BACK_MESSAGE.format(name=user["name"])}

        store.start(message.phone)
        return {"message": WELCOME_NEW_USER_MESSAGE}


async def handle_onboarding_step(
    message: InboundMessage,
    state: OnboardingState,
    store: OnboardingStore,
) -> Optional[Dict[str, Any]]:
    """
    Advances an in-progress onboarding. Caller holds store.lock(message.phone).

    Args:
        message: Inbound message
        state: Current onboarding state for the sender
        store: Onboarding store

    Returns:
        Response dict, or None for an unexpected step
    """
    with LogContext(phone=message.phone, state=state.step.value):
        if state.step == OnboardingStep.AWAITING_NAME:
            name = message.text.strip()
            if not name:
                logger.info("Empty name submitted, re-prompting")
                return {"message": ASK_NAME_AGAIN_MESSAGE}

            store.advance(message.phone, OnboardingStep.AWAITING_EMAIL, name=name)
            return {"message": ASK_EMAIL_MESSAGE.format(name=name)}

        if state.step == OnboardingStep.AWAITING_EMAIL:
            email = message.text.strip()

            if not validate_email(email):
                logger.info("Invalid email submitted, re-prompting")
                return {"message": INVALID_EMAIL_MESSAGE}

            user = await create_user(phone=message.phone, name=state.name, email=email)
            store.complete(message.phone)
            return {"message": ONBOARDING_COMPLETE_MESSAGE.format(name=user["name"])}

        logger.warning(f"Unexpected onboarding step: {state.step}")
        return None
