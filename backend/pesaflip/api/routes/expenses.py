"""Expenses: categories, create, filtered list, approve/reject, delete."""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, get_current_user_id
from pesaflip.core.exceptions import success_response
from pesaflip.schemas.expense import ExpenseCreate, ExpenseRecord, ExpenseStatusUpdate
from pesaflip.services import expense_service

router = APIRouter()


@router.get("/categories")
def list_categories(user_id: str = Depends(get_current_user_id)):
    return success_response(expense_service.list_categories())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    expense = expense_service.create_expense(db, user_id, data)
    return success_response(ExpenseRecord.model_validate(expense), "Expense added")


@router.get("")
def list_expenses(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    category: Optional[str] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    expenses = expense_service.list_expenses(
        db, user_id,
        date_from=date_from,
        date_to=date_to,
        category=category,
        min_amount=min_amount,
        max_amount=max_amount,
        status=status,
    )
    return success_response([ExpenseRecord.model_validate(e) for e in expenses])


@router.patch("/{expense_id}/status")
def review_expense(
    expense_id: str,
    data: ExpenseStatusUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    expense = expense_service.review_expense(db, user_id, expense_id, data.status)
    return success_response(ExpenseRecord.model_validate(expense), f"Expense {expense.status}")


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    expense_service.delete_expense(db, user_id, expense_id)
    return success_response({"id": expense_id}, "Expense deleted")
