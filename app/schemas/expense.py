"""
app/schemas/expense.py

Purpose: Expense payload schemas

- ParsedReceipt: normalized output of the receipt parser
- ExpenseCreate: body of POST /expense
- ExpenseOut: expense as returned by the API
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings
from app.models.expense import DEFAULT_STATUS, normalize_category
from utils.time_utils import parse_datetime


class ParsedReceipt(BaseModel):
    """
    Structured expense record derived from raw receipt text.

    Low-confidence values are still accepted: a missing date becomes today,
    a missing currency the configured default. A missing amount is rejected.
    """
    merchant: str = "Unknown"
    amount: float = Field(..., ge=0)
    date: datetime = Field(default_factory=datetime.utcnow)
    category: str = "Other"
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    language: str = "en"

    @field_validator("merchant", mode="before")
    @classmethod
    def default_merchant(cls, v):
        return str(v).strip() if v and str(v).strip() else "Unknown"

    @field_validator("date", mode="before")
    @classmethod
    def lenient_date(cls, v):
        return parse_datetime(v) or datetime.utcnow()

    @field_validator("category", mode="before")
    @classmethod
    def known_category(cls, v):
        return normalize_category(v).value

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        return str(v).strip().upper() if v else settings.DEFAULT_CURRENCY

    @field_validator("language", mode="before")
    @classmethod
    def default_language(cls, v):
        return str(v).strip().lower() if v else "en"


class ExpenseCreate(BaseModel):
    user_id: str
    image_url: Optional[str] = None
    merchant: str
    amount: float = Field(..., ge=0)
    date: datetime
    category: str = "Other"
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    language: str = "en"
    status: str = DEFAULT_STATUS

    @field_validator("date", mode="before")
    @classmethod
    def iso_date(cls, v):
        parsed = parse_datetime(v)
        if parsed is None:
            raise ValueError("date must be an ISO 8601 date or datetime")
        return parsed

    @field_validator("category", mode="before")
    @classmethod
    def known_category(cls, v):
        return normalize_category(v).value


class ExpenseOut(BaseModel):
    id: str
    user_id: str
    image_url: Optional[str] = None
    merchant: str
    amount: float
    date: datetime
    category: Optional[str] = None
    currency: str
    language: str
    status: str
    created_at: datetime
    updated_at: datetime
