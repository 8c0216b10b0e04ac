"""
app/services/expense_service.py

Purpose: Expense persistence

- Insert expenses owned by a registered user
- List a user's expenses newest first, optionally from a start date
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from app.core.exceptions import PersistenceError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_expenses_collection
from app.models.expense import build_expense_document

logger = get_logger(__name__)


async def create_expense(user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Persists an expense for a user.

    Args:
        user_id: Owning user's id
        fields: merchant, amount, date, category, currency, language,
                and optionally image_url and status

    Returns:
        The created expense document

    Raises:
        PersistenceError: If the insert fails
    """
    with LogContext(user_id=user_id):
        expenses = get_expenses_collection()
        expense = build_expense_document(user_id, fields)

        try:
            await expenses.insert_one(expense)
        except PyMongoError as e:
            logger.error(f"Failed to save expense: {e}", exc_info=True)
            raise PersistenceError("Could not save expense") from e

        expense.pop("_id", None)
        logger.info(
            f"Expense saved: {expense['merchant']} {expense['amount']} {expense['currency']}"
        )
        return expense


async def get_expenses_by_user(
    user_id: str,
    since: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Lists a user's expenses ordered by date descending.

    Args:
        user_id: Owning user's id
        since: If given, only expenses with date >= since

    Returns:
        List of expense documents
    """
    query: Dict[str, Any] = {"user_id": user_id}
    if since is not None:
        query["date"] = {"$gte": since}

    expenses = get_expenses_collection()
    try:
        cursor = expenses.find(query, {"_id": 0}).sort("date", DESCENDING)
        return await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(f"Failed to list expenses: {e}", exc_info=True)
        raise PersistenceError("Could not load expenses") from e
