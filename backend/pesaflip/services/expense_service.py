"""Business expenses. New expenses start pending; an owner approves or rejects them."""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from pesaflip.core.audit import AuditLog
from pesaflip.core.exceptions import BusinessError
from pesaflip.models.expense import Expense, EXPENSE_CATEGORIES, EXPENSE_STATUSES
from pesaflip.schemas.expense import ExpenseCreate
from pesaflip.services.invoice_service import sanitize_text
from pesaflip.services.money import positive_amount

logger = logging.getLogger(__name__)

# pending -> approved | rejected, nothing after that
REVIEW_STATUSES = ("approved", "rejected")


def list_categories() -> list[dict]:
    return [{"id": key, "name": name} for key, name in EXPENSE_CATEGORIES.items()]


def create_expense(db: Session, user_id: str, data: ExpenseCreate) -> Expense:
    if data.category not in EXPENSE_CATEGORIES:
        raise BusinessError.bad_request(
            f"Category must be one of: {', '.join(EXPENSE_CATEGORIES)}"
        )
    amount = positive_amount(data.amount)
    description = sanitize_text(data.description, 500)
    if not description:
        raise BusinessError.bad_request("Description is required")

    expense = Expense(
        user_id=user_id,
        date=data.date or date.today(),
        category=data.category,
        amount=amount,
        description=description,
        receipt=data.receipt,
        status="pending",
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    AuditLog.log_action("create", "expense", expense.id, user_id, changes={
        "category": expense.category,
        "amount": str(amount),
    })
    return expense


def list_expenses(
    db: Session,
    user_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    category: Optional[str] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    status: Optional[str] = None,
) -> list[Expense]:
    """Filtered expenses, newest first."""
    if date_from and date_to and date_from > date_to:
        raise BusinessError.bad_request("date_from must be on or before date_to")
    if status and status not in EXPENSE_STATUSES:
        raise BusinessError.bad_request(f"Status must be one of: {', '.join(EXPENSE_STATUSES)}")

    query = db.query(Expense).filter(Expense.user_id == user_id)
    if date_from:
        query = query.filter(Expense.date >= date_from)
    if date_to:
        query = query.filter(Expense.date <= date_to)
    if category:
        query = query.filter(Expense.category == category)
    if min_amount is not None:
        query = query.filter(Expense.amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Expense.amount <= max_amount)
    if status:
        query = query.filter(Expense.status == status)

    return query.order_by(Expense.date.desc(), Expense.created_at.desc()).all()


def get_expense(db: Session, user_id: str, expense_id: str) -> Expense:
    expense = db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.user_id == user_id,
    ).first()
    if not expense:
        raise BusinessError.not_found("Expense", reason=f"expense {expense_id} for user {user_id}")
    return expense


def review_expense(db: Session, user_id: str, expense_id: str, new_status: str) -> Expense:
    expense = get_expense(db, user_id, expense_id)
    if new_status not in REVIEW_STATUSES:
        raise BusinessError.bad_request(f"Status must be one of: {', '.join(REVIEW_STATUSES)}")
    if expense.status != "pending":
        raise BusinessError.bad_request(f"Expense has already been {expense.status}")

    expense.status = new_status
    db.commit()
    db.refresh(expense)
    AuditLog.log_action("status", "expense", expense.id, user_id, changes={"status": new_status})
    return expense


def delete_expense(db: Session, user_id: str, expense_id: str) -> None:
    expense = get_expense(db, user_id, expense_id)
    db.delete(expense)
    db.commit()
    AuditLog.log_action("delete", "expense", expense_id, user_id)
