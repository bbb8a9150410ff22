"""Financial reports: yearly summary, monthly breakdown, expense categories, dashboard overview."""
import calendar
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pesaflip.core.config import settings
from pesaflip.models.expense import Expense, EXPENSE_CATEGORIES
from pesaflip.models.invoice import Invoice
from pesaflip.services import credit_service, invoice_service, wallet_service
from pesaflip.services.money import to_money

# Revenue = paid invoices, expenses = approved expenses
REVENUE_STATUS = "paid"
RECEIVABLE_STATUSES = ("sent", "overdue")
COUNTED_EXPENSE_STATUS = "approved"


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _revenue(db: Session, user_id: str, start: date, end: date) -> Decimal:
    total = db.query(func.sum(Invoice.total)).filter(
        Invoice.user_id == user_id,
        Invoice.status == REVENUE_STATUS,
        Invoice.issue_date >= start,
        Invoice.issue_date <= end,
    ).scalar()
    return to_money(total or 0)


def _expenses(db: Session, user_id: str, start: date, end: date) -> Decimal:
    total = db.query(func.sum(Expense.amount)).filter(
        Expense.user_id == user_id,
        Expense.status == COUNTED_EXPENSE_STATUS,
        Expense.date >= start,
        Expense.date <= end,
    ).scalar()
    return to_money(total or 0)


def outstanding_receivables(db: Session, user_id: str) -> Decimal:
    """What clients still owe on sent and overdue invoices, net of part payments."""
    invoices = db.query(Invoice).filter(
        Invoice.user_id == user_id,
        Invoice.status.in_(RECEIVABLE_STATUSES),
    ).all()
    return to_money(sum((invoice_service.balance_due(inv) for inv in invoices), Decimal("0")))


def get_summary(db: Session, user_id: str, year: Optional[int] = None) -> dict:
    year = year or date.today().year
    start, end = _year_bounds(year)
    revenue = _revenue(db, user_id, start, end)
    expenses = _expenses(db, user_id, start, end)
    return {
        "year": year,
        "total_revenue": revenue,
        "total_expenses": expenses,
        "profit": revenue - expenses,
        "outstanding_receivables": outstanding_receivables(db, user_id),
        "wallet_balance": wallet_service.get_wallet_balance(db, user_id),
        "currency": settings.CURRENCY,
    }


def get_monthly(db: Session, user_id: str, year: Optional[int] = None) -> list[dict]:
    """Twelve rows, one per month, zero-filled."""
    year = year or date.today().year
    start, end = _year_bounds(year)

    revenue = defaultdict(Decimal)
    for issue_date, total in db.query(Invoice.issue_date, Invoice.total).filter(
        Invoice.user_id == user_id,
        Invoice.status == REVENUE_STATUS,
        Invoice.issue_date >= start,
        Invoice.issue_date <= end,
    ):
        revenue[issue_date.month] += Decimal(total)

    expenses = defaultdict(Decimal)
    for expense_date, amount in db.query(Expense.date, Expense.amount).filter(
        Expense.user_id == user_id,
        Expense.status == COUNTED_EXPENSE_STATUS,
        Expense.date >= start,
        Expense.date <= end,
    ):
        expenses[expense_date.month] += Decimal(amount)

    rows = []
    for month in range(1, 13):
        month_revenue = to_money(revenue[month])
        month_expenses = to_money(expenses[month])
        rows.append({
            "month": calendar.month_abbr[month],
            "revenue": month_revenue,
            "expenses": month_expenses,
            "profit": month_revenue - month_expenses,
        })
    return rows


def share_percent(part: Decimal, whole: Decimal) -> int:
    """Whole-number share of ``whole``, half-up. 0 when there is nothing to share."""
    if not whole:
        return 0
    return int((part * 100 / whole).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def get_expense_breakdown(db: Session, user_id: str, year: Optional[int] = None) -> list[dict]:
    """Approved spend per category with its share of the total, largest first."""
    year = year or date.today().year
    start, end = _year_bounds(year)
    rows = db.query(Expense.category, func.sum(Expense.amount)).filter(
        Expense.user_id == user_id,
        Expense.status == COUNTED_EXPENSE_STATUS,
        Expense.date >= start,
        Expense.date <= end,
    ).group_by(Expense.category).all()

    totals = [(category, to_money(amount or 0)) for category, amount in rows]
    grand_total = sum((amount for _, amount in totals), Decimal("0"))
    breakdown = []
    for category, amount in sorted(totals, key=lambda row: row[1], reverse=True):
        percentage = share_percent(amount, grand_total)
        breakdown.append({
            "category": category,
            "name": EXPENSE_CATEGORIES.get(category, category),
            "amount": amount,
            "percentage": percentage,
        })
    return breakdown


def get_overview(db: Session, user_id: str, today: Optional[date] = None) -> dict:
    today = today or date.today()
    start, end = _month_bounds(today.year, today.month)
    return {
        "revenue_this_month": _revenue(db, user_id, start, end),
        "pending_invoices_amount": outstanding_receivables(db, user_id),
        "expenses_this_month": _expenses(db, user_id, start, end),
        "available_credit": credit_service.available_credit(db, user_id),
        "credit_limit": to_money(settings.CREDIT_LIMIT),
        "wallet_balance": wallet_service.get_wallet_balance(db, user_id),
        "currency": settings.CURRENCY,
        "recent_transactions": wallet_service.get_recent_transactions(db, user_id, 5),
    }
