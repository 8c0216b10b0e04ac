"""
app/flow/states.py

Purpose: Defines the onboarding conversation states

- Enum for each onboarding step
- Single source of truth for flow stages
- State transition validation

UNKNOWN --"join"--> AWAITING_NAME --any text--> AWAITING_EMAIL
AWAITING_EMAIL --invalid email--> AWAITING_EMAIL
AWAITING_EMAIL --valid email--> REGISTERED (state deleted, user persisted)
REGISTERED --"join"--> REGISTERED
"""

from enum import Enum
from typing import Dict, List


class OnboardingStep(str, Enum):
    """
    Steps held in process-local onboarding state.
    UNKNOWN and REGISTERED are implied by the absence of state; the store
    never holds them, and their STATE_TRANSITIONS entries only document
    the full conversation model.
    """
    UNKNOWN = "unknown"
    AWAITING_NAME = "awaiting_name"
    AWAITING_EMAIL = "awaiting_email"
    REGISTERED = "registered"


# Valid state transitions - prevents skipping steps
STATE_TRANSITIONS: Dict[OnboardingStep, List[OnboardingStep]] = {
    OnboardingStep.UNKNOWN: [
        OnboardingStep.AWAITING_NAME,
    ],
    OnboardingStep.AWAITING_NAME: [
        OnboardingStep.AWAITING_EMAIL,
        OnboardingStep.AWAITING_NAME,  # "join" again restarts
    ],
    OnboardingStep.AWAITING_EMAIL: [
        OnboardingStep.AWAITING_EMAIL,  # Re-prompt on invalid email
        OnboardingStep.REGISTERED,
        OnboardingStep.AWAITING_NAME,  # "join" again restarts
    ],
    OnboardingStep.REGISTERED: [
        OnboardingStep.REGISTERED,
    ],
}


def is_valid_transition(from_state: OnboardingStep, to_state: OnboardingStep) -> bool:
    """
    Checks if a state transition is allowed.
    """
    return to_state in STATE_TRANSITIONS.get(from_state, [])
