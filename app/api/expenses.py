"""
app/api/expenses.py

Purpose: Expense REST endpoints

- POST /expense: record an expense for an existing user
- GET /user/{phone}/expenses: a user's expenses, newest first
"""

from typing import List

from fastapi import APIRouter, status

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger
from app.schemas.expense import ExpenseCreate, ExpenseOut
from app.services.expense_service import create_expense, get_expenses_by_user
from app.services.user_service import get_user_by_id, get_user_by_phone

logger = get_logger(__name__)
router = APIRouter()


@router.post("/expense", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense_endpoint(payload: ExpenseCreate):
    user = await get_user_by_id(payload.user_id)
    if not user:
        raise ResourceNotFoundError("User not found")

    return await create_expense(user["id"], payload.model_dump(exclude={"user_id"}))


@router.get("/user/{phone}/expenses", response_model=List[ExpenseOut])
async def list_user_expenses(phone: str):
    user = await get_user_by_phone(phone)
    if not user:
        raise ResourceNotFoundError("User not found")

    return await get_expenses_by_user(user["id"])
