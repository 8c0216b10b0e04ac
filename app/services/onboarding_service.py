"""
app/services/onboarding_service.py

Purpose: Onboarding session state

- Holds in-progress onboarding per phone number (process-local)
- Serializes handling per phone number with keyed asyncio locks
- Enforces valid step transitions
- Optional idle expiry so abandoned sessions don't accumulate
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Dict, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.flow.states import OnboardingStep, is_valid_transition
from utils.time_utils import is_expired

logger = get_logger(__name__)


@dataclass
class OnboardingState:
    step: OnboardingStep
    name: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)


class KeyedLock:
    """
    One asyncio.Lock per key, dropped once nobody holds or waits on it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class OnboardingStore:
    """
    In-memory onboarding table keyed by phone number.

    Callers must hold lock(phone) around any get/set/delete sequence that
    reads and then writes the same phone's state.
    """

    def __init__(self, ttl_minutes: Optional[int] = None):
        self._states: Dict[str, OnboardingState] = {}
        self._locks = KeyedLock()
        self.ttl_minutes = settings.ONBOARDING_TTL_MINUTES if ttl_minutes is None else ttl_minutes

    def lock(self, phone: str):
        return self._locks.acquire(phone)

    def get(self, phone: str) -> Optional[OnboardingState]:
        state = self._states.get(phone)
        if state is not None and is_expired(state.updated_at, self.ttl_minutes):
            logger.info("Onboarding session expired", extra={"phone": phone})
            del self._states[phone]
            return None
        return state

    def start(self, phone: str) -> OnboardingState:
        """Creates (or overwrites) state at awaiting_name."""
        state = OnboardingState(step=OnboardingStep.AWAITING_NAME)
        self._states[phone] = state
        logger.info("Onboarding started", extra={"phone": phone, "state": state.step.value})
        return state

    def advance(self, phone: str, to_step: OnboardingStep, **fields) -> OnboardingState:
        """
        Moves a phone's state to the next step, merging collected fields.

        Raises:
            KeyError: If the phone has no onboarding state
            ValueError: If the transition is not allowed
        """
        state = self._states[phone]
        if not is_valid_transition(state.step, to_step):
            raise ValueError(f"Invalid onboarding transition: {state.step} -> {to_step}")

        for key, value in fields.items():
            setattr(state, key, value)
        state.step = to_step
        state.updated_at = datetime.utcnow()

        logger.info("Onboarding advanced", extra={"phone": phone, "state": to_step.value})
        return state

    def complete(self, phone: str) -> None:
        self._states.pop(phone, None)
        logger.info("Onboarding completed", extra={"phone": phone})

    def __contains__(self, phone: str) -> bool:
        return self.get(phone) is not None

    def __len__(self) -> int:
        return len(self._states)


# Singleton instance
onboarding_store = OnboardingStore()
