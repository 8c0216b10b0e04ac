"""
app/models/expense.py

Purpose: Expense document model

- Owning user reference and source image
- Merchant, amount, currency, date, category, language
- Review status (starts as "pending") and timestamps
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ExpenseCategory(str, Enum):
    FOOD = "Food"
    TRAVEL = "Travel"
    OFFICE = "Office"
    SHOPPING = "Shopping"
    FUEL = "Fuel"
    GROCERIES = "Groceries"
    OTHER = "Other"


DEFAULT_STATUS = "pending"
UNCATEGORIZED = "Uncategorized"

_CATEGORY_LOOKUP = {category.value.lower(): category for category in ExpenseCategory}


def normalize_category(value: Optional[str]) -> ExpenseCategory:
    """
    Maps a free-form category (the parser often answers "food") onto the
    fixed category set. Anything unrecognised becomes Other.
    """
    if not value:
        return ExpenseCategory.OTHER
    return _CATEGORY_LOOKUP.get(str(value).strip().lower(), ExpenseCategory.OTHER)


def build_expense_document(user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow()
    document = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "image_url": fields.get("image_url"),
        "merchant": fields["merchant"],
        "amount": float(fields["amount"]),
        "date": fields["date"],
        "category": fields.get("category"),
        "currency": fields["currency"],
        "language": fields["language"],
        "status": fields.get("status") or DEFAULT_STATUS,
        "created_at": now,
        "updated_at": now,
    }
    if isinstance(document["category"], Enum):
        document["category"] = document["category"].value
    return document
