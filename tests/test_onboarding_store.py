"""
Tests for onboarding state storage and per-phone locking.
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from app.flow.states import OnboardingStep, is_valid_transition
from app.services.onboarding_service import KeyedLock, OnboardingStore

PHONE = "+971500000042"


class TestTransitions:

    @pytest.mark.parametrize(
        "current,target",
        [
            (OnboardingStep.UNKNOWN, OnboardingStep.AWAITING_NAME),
            (OnboardingStep.AWAITING_NAME, OnboardingStep.AWAITING_EMAIL),
            (OnboardingStep.AWAITING_EMAIL, OnboardingStep.AWAITING_EMAIL),
            (OnboardingStep.AWAITING_EMAIL, OnboardingStep.REGISTERED),
        ],
    )
    def test_allowed(self, current, target):
        assert is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OnboardingStep.UNKNOWN, OnboardingStep.REGISTERED),
            (OnboardingStep.AWAITING_NAME, OnboardingStep.REGISTERED),
            (OnboardingStep.REGISTERED, OnboardingStep.AWAITING_EMAIL),
        ],
    )
    def test_rejected(self, current, target):
        assert not is_valid_transition(current, target)


class TestOnboardingStore:

    def test_start_and_advance(self):
        store = OnboardingStore(ttl_minutes=0)

        store.start(PHONE)
        state = store.advance(PHONE, OnboardingStep.AWAITING_EMAIL, name="Omar")

        assert state.step == OnboardingStep.AWAITING_EMAIL
        assert state.name == "Omar"
        assert PHONE in store

    def test_invalid_transition_raises(self):
        store = OnboardingStore(ttl_minutes=0)
        store.start(PHONE)

        with pytest.raises(ValueError):
            store.advance(PHONE, OnboardingStep.REGISTERED)

    def test_complete_removes_state(self):
        store = OnboardingStore(ttl_minutes=0)
        store.start(PHONE)

        store.complete(PHONE)

        assert store.get(PHONE) is None
        assert len(store) == 0

    def test_idle_state_expires(self):
        store = OnboardingStore(ttl_minutes=30)
        state = store.start(PHONE)
        state.updated_at = datetime.utcnow() - timedelta(minutes=31)

        assert store.get(PHONE) is None
        assert len(store) == 0

    def test_zero_ttl_never_expires(self):
        store = OnboardingStore(ttl_minutes=0)
        state = store.start(PHONE)
        state.updated_at = datetime.utcnow() - timedelta(days=365)

        assert store.get(PHONE) is not None


class TestKeyedLock:

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        locks = KeyedLock()
        events = []

        async def worker(name):
            async with locks.acquire(PHONE):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = asyncio.Event()

        async def holder():
            async with locks.acquire("+1000000001"):
                await asyncio.wait_for(entered.wait(), timeout=1)

        async def other():
            async with locks.acquire("+1000000002"):
                entered.set()

        await asyncio.gather(holder(), other())

    @pytest.mark.asyncio
    async def test_locks_are_released_after_use(self):
        locks = KeyedLock()

        async with locks.acquire(PHONE):
            assert len(locks) == 1

        assert len(locks) == 0
