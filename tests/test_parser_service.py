"""
Tests for structured receipt parsing.
"""

import json
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from app.core.exceptions import ReceiptParseError
from app.schemas.expense import ParsedReceipt
from app.services.parser_service import ReceiptParser


def parser_returning(content=None, error=None):
    client = MagicMock()
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    client.chat.completions.create = AsyncMock(return_value=completion, side_effect=error)
    return ReceiptParser(client=client, model="test-model"), client


@pytest.mark.asyncio
async def test_parses_json_object():
    payload = {
        "merchant": "Carrefour",
        "amount": 87.25,
        "date": "2025-05-25",
        "category": "groceries",
        "currency": "aed",
        "language": "ar",
    }
    parser, client = parser_returning(json.dumps(payload))

    parsed = await parser.parse("CARREFOUR TOTAL 87.25")

    assert parsed == ParsedReceipt(
        merchant="Carrefour", amount=87.25, date=datetime(2025, 5, 25),
        category="Groceries", currency="AED", language="ar",
    )
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "CARREFOUR TOTAL 87.25" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_accepts_code_fenced_json():
    parser, _ = parser_returning('```json\n{"merchant": "ENOC", "amount": 100}\n```')

    parsed = await parser.parse("ENOC 100.00")

    assert parsed.merchant == "ENOC"
    assert parsed.amount == 100.0


@pytest.mark.asyncio
async def test_low_confidence_fields_get_defaults():
    parser, _ = parser_returning('{"merchant": "", "amount": 12, "date": "sometime", "category": "Pets"}')

    parsed = await parser.parse("??? 12")

    assert parsed.merchant == "Unknown"
    assert parsed.category == "Other"
    assert parsed.currency == "AED"
    assert parsed.language == "en"
    assert parsed.date.date() == datetime.utcnow().date()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "I could not read this receipt.",
        "[1, 2, 3]",
        '{"merchant": "No Total"}',
        '{"merchant": "Refund", "amount": -5}',
        None,
    ],
)
async def test_unusable_output_raises(content):
    parser, _ = parser_returning(content)

    with pytest.raises(ReceiptParseError):
        await parser.parse("some text")


@pytest.mark.asyncio
async def test_api_failure_raises():
    parser, _ = parser_returning(error=OpenAIError("timeout"))

    with pytest.raises(ReceiptParseError):
        await parser.parse("some text")
