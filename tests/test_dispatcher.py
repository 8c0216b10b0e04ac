"""
Tests for the conversation dispatcher and onboarding state machine.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.exceptions import SummaryGenerationError
from app.flow.dispatcher import dispatch_message
from app.flow.states import OnboardingStep
from app.schemas.webhook import parse_twilio_message
from utils.constants import ASK_NAME_AGAIN_MESSAGE, SUMMARY_FAILED_MESSAGE

PHONE = "+971500000099"


def inbound(body="", phone=PHONE, **kwargs):
    return parse_twilio_message(from_number=f"whatsapp:{phone}", body=body, message_sid="SM1", **kwargs)


class TestStatusUpdates:

    @pytest.mark.asyncio
    async def test_status_callback_is_ignored(self, fake_db, sent_messages, store):
        message = parse_twilio_message(from_number=f"whatsapp:{PHONE}", message_status="delivered")

        assert await dispatch_message(message) is None
        assert sent_messages == []
        assert len(store) == 0


class TestOnboarding:

    @pytest.mark.asyncio
    async def test_join_from_unknown_phone_starts_onboarding(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))

        state = store.get(PHONE)
        assert state.step == OnboardingStep.AWAITING_NAME
        assert fake_db.users.documents == []
        assert "What's your name?" in sent_messages[0][1]

    @pytest.mark.asyncio
    async def test_join_is_case_insensitive_substring(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("I want to JOIN please"))

        assert store.get(PHONE).step == OnboardingStep.AWAITING_NAME

    @pytest.mark.asyncio
    async def test_full_onboarding_registers_user(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))
        await dispatch_message(inbound("  Omar Khan  "))

        state = store.get(PHONE)
        assert state.step == OnboardingStep.AWAITING_EMAIL
        assert state.name == "Omar Khan"
        assert "Thanks Omar Khan" in sent_messages[-1][1]

        await dispatch_message(inbound("a@b.co"))

        assert store.get(PHONE) is None
        assert len(fake_db.users.documents) == 1
        user = fake_db.users.documents[0]
        assert user["phone"] == PHONE
        assert user["name"] == "Omar Khan"
        assert user["email"] == "a@b.co"
        assert user["company_id"] == "default"
        assert "all set up, Omar Khan" in sent_messages[-1][1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_email", ["not-an-email", "user@domain", "a b@c.com", "@b.co", "a@.co x"])
    async def test_invalid_email_keeps_awaiting_email(self, fake_db, sent_messages, store, bad_email):
        await dispatch_message(inbound("join"))
        await dispatch_message(inbound("Omar"))
        await dispatch_message(inbound(bad_email))

        assert store.get(PHONE).step == OnboardingStep.AWAITING_EMAIL
        assert fake_db.users.documents == []
        assert "valid email" in sent_messages[-1][1]

    @pytest.mark.asyncio
    async def test_join_again_mid_onboarding_restarts(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))
        await dispatch_message(inbound("Omar"))
        await dispatch_message(inbound("join"))

        state = store.get(PHONE)
        assert state.step == OnboardingStep.AWAITING_NAME
        assert state.name is None

    @pytest.mark.asyncio
    async def test_join_twice_for_registered_user_is_idempotent(self, registered_user, fake_db, sent_messages, store):
        phone = registered_user["phone"]

        await dispatch_message(inbound("join", phone=phone))
        await dispatch_message(inbound("join", phone=phone))

        assert len(fake_db.users.documents) == 1
        assert len(sent_messages) == 2
        assert all("Welcome back, Aisha" in text for _, text in sent_messages)
        assert store.get(phone) is None

    @pytest.mark.asyncio
    async def test_empty_name_re_prompts(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))
        await dispatch_message(
            inbound("", num_media="1", media_url="https://api.twilio.com/media/ME1", media_content_type="image/jpeg")
        )

        state = store.get(PHONE)
        assert state.step == OnboardingStep.AWAITING_NAME
        assert state.name is None
        assert sent_messages[-1][1] == ASK_NAME_AGAIN_MESSAGE

    @pytest.mark.asyncio
    async def test_concurrent_steps_for_one_phone_are_serialized(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))

        await asyncio.gather(dispatch_message(inbound("Omar")), dispatch_message(inbound("a@b.co")))

        assert len(fake_db.users.documents) == 1
        assert fake_db.users.documents[0]["name"] == "Omar"
        assert store.get(PHONE) is None

    @pytest.mark.asyncio
    async def test_duplicate_email_replies_register_once(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))
        await dispatch_message(inbound("Omar"))

        responses = await asyncio.gather(dispatch_message(inbound("a@b.co")), dispatch_message(inbound("a@b.co")))

        assert len(fake_db.users.documents) == 1
        assert store.get(PHONE) is None
        assert sum("all set up" in r["message"] for r in responses) == 1
        assert not any("Something went wrong" in r["message"] for r in responses)

    @pytest.mark.asyncio
    async def test_persistence_failure_sends_generic_error(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("join"))
        await dispatch_message(inbound("Omar"))

        with patch("app.flow.handlers.onboarding.create_user", AsyncMock(side_effect=RuntimeError("db down"))):
            response = await dispatch_message(inbound("a@b.co"))

        assert "Something went wrong" in response["message"]
        assert store.get(PHONE).step == OnboardingStep.AWAITING_EMAIL


class TestRegisteredUserRouting:

    @pytest.mark.asyncio
    async def test_unknown_sender_is_told_to_join(self, fake_db, sent_messages, store):
        await dispatch_message(inbound("hello"))

        assert "send *join*" in sent_messages[0][1]
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_plain_text_gets_help(self, registered_user, sent_messages, store):
        await dispatch_message(inbound("hello", phone=registered_user["phone"]))

        assert "Hi Aisha" in sent_messages[0][1]
        assert "summary month" in sent_messages[0][1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body,period",
        [
            ("summary", "week"),
            ("Summary month please", "month"),
            ("summary year", "ytd"),
            ("SUMMARY YTD", "ytd"),
            ("summary month of this year", "ytd"),
        ],
    )
    async def test_summary_period_detection(self, registered_user, sent_messages, store, body, period):
        response = await dispatch_message(inbound(body, phone=registered_user["phone"]))

        assert response["period"] == period
        assert len(sent_messages) == 1

    @pytest.mark.asyncio
    async def test_summary_failure_sends_apology(self, registered_user, sent_messages, store):
        generator = MagicMock()
        generator.summarize = AsyncMock(side_effect=SummaryGenerationError("openai exploded", details="sk-secret"))

        with patch("app.flow.handlers.commands.get_summary_generator", return_value=generator):
            response = await dispatch_message(inbound("summary month", phone=registered_user["phone"]))

        assert response["message"] == SUMMARY_FAILED_MESSAGE
        assert sent_messages == [(registered_user["phone"], SUMMARY_FAILED_MESSAGE)]
        assert "exploded" not in sent_messages[0][1]
        assert "sk-secret" not in sent_messages[0][1]

    @pytest.mark.asyncio
    async def test_image_routes_to_receipt_pipeline(self, registered_user, sent_messages, store):
        message = inbound(
            "",
            phone=registered_user["phone"],
            num_media="1",
            media_url="https://api.twilio.com/media/ME1",
            media_content_type="image/jpeg",
        )

        with patch("app.flow.dispatcher.handle_receipt", AsyncMock(return_value=None)) as receipt:
            await dispatch_message(message)

        receipt.assert_awaited_once()
        assert sent_messages == []

    @pytest.mark.asyncio
    async def test_non_image_media_is_treated_as_text(self, registered_user, sent_messages, store):
        message = inbound(
            "",
            phone=registered_user["phone"],
            num_media="1",
            media_url="https://api.twilio.com/media/ME1",
            media_content_type="application/pdf",
        )

        with patch("app.flow.dispatcher.handle_receipt", AsyncMock()) as receipt:
            await dispatch_message(message)

        receipt.assert_not_awaited()
        assert "Hi Aisha" in sent_messages[0][1]
