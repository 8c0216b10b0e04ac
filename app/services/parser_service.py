"""
app/services/parser_service.py

Purpose: Structured receipt parsing

- Sends OCR text to OpenAI with a JSON-only prompt
- Validates the answer into a ParsedReceipt
- Raises ReceiptParseError when no usable record comes back
"""

import json
from typing import Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import ReceiptParseError
from app.core.logging import get_logger
from app.models.expense import ExpenseCategory
from app.schemas.expense import ParsedReceipt

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a smart financial assistant. You take OCR-extracted receipt text "
    "(possibly noisy and in any language, including Arabic or English), and return "
    "structured data as clean JSON. Always return valid JSON with no additional text."
)

CATEGORIES = ", ".join(category.value for category in ExpenseCategory)

PARSE_PROMPT = """Parse the following receipt text and extract the following information in JSON format:
- merchant: The name of the store/merchant
- amount: The total amount paid (as a number)
- date: The date of purchase (in ISO format YYYY-MM-DD)
- category: Choose from [{categories}]
- currency: The currency used (ISO code, e.g. USD, EUR, AED)
- language: The language of the receipt (e.g. en, ar, fr)

Receipt text:
{text}

Return a valid JSON object with no additional text or explanation. Example format:
{{"merchant": "Starbucks", "amount": 22.00, "date": "2025-05-25", "category": "Food", "currency": "AED", "language": "ar"}}"""


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.strip("`")
        if content.lower().startswith("json"):
            content = content[4:]
    return content.strip()


class ReceiptParser:
    """Turns raw receipt text into a structured expense record."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.OPENAI_PARSER_MODEL

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT,
            )
        return self._client

    async def parse(self, text: str) -> ParsedReceipt:
        """
        Parses receipt text.

        Args:
            text: Non-empty OCR text

        Returns:
            ParsedReceipt

        Raises:
            ReceiptParseError: On API failure or invalid structured output
        """
        prompt = PARSE_PROMPT.format(categories=CATEGORIES, text=text)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.2,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise ReceiptParseError("Receipt parsing service unavailable", details=str(e)) from e

        content = response.choices[0].message.content or ""
        logger.debug(f"Raw parser response: {content}")

        try:
            payload = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError as e:
            raise ReceiptParseError("Parser returned invalid JSON", details=content) from e

        if not isinstance(payload, dict):
            raise ReceiptParseError("Parser returned a non-object", details=content)

        try:
            parsed = ParsedReceipt.model_validate(payload)
        except PydanticValidationError as e:
            raise ReceiptParseError("Parser output is missing required fields", details=e.errors()) from e

        logger.info(f"Parsed receipt: {parsed.merchant} {parsed.amount} {parsed.currency}")
        return parsed

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None


_receipt_parser: Optional[ReceiptParser] = None


def get_receipt_parser() -> ReceiptParser:
    global _receipt_parser
    if _receipt_parser is None:
        _receipt_parser = ReceiptParser()
    return _receipt_parser


async def close_receipt_parser():
    if _receipt_parser is not None:
        await _receipt_parser.close()
