"""
Credit line: simple-interest, fixed-term loans against a per-user limit.

    interest = principal * rate/100 * days/365
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from pesaflip.core.audit import AuditLog
from pesaflip.core.config import settings
from pesaflip.core.exceptions import BusinessError
from pesaflip.db.base import utcnow
from pesaflip.models.loan import Loan, LoanPayment, LOAN_PERIODS, LOAN_PURPOSES
from pesaflip.schemas.credit import LoanApplication
from pesaflip.services.money import positive_amount, to_money

logger = logging.getLogger(__name__)

MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 850
ON_TIME_POINTS = 10
LATE_PENALTY = 30
MISSED_PENALTY = 60

SCORE_RATINGS = (
    (750, "Excellent"),
    (700, "Good"),
    (650, "Fair"),
    (600, "Poor"),
)


def credit_rating(score: int) -> str:
    for floor, label in SCORE_RATINGS:
        if score >= floor:
            return label
    return "Very Poor"


def list_periods() -> list[int]:
    return list(LOAN_PERIODS)


def list_purposes() -> list[dict]:
    return [{"id": key, "name": name} for key, name in LOAN_PURPOSES.items()]


def _validate_amount_and_period(amount, period_days: int) -> Decimal:
    value = positive_amount(amount)
    if period_days not in LOAN_PERIODS:
        raise BusinessError.bad_request(
            f"Loan period must be one of: {', '.join(str(p) for p in LOAN_PERIODS)} days"
        )
    return value


def loan_preview(amount, period_days: int, today: Optional[date] = None) -> dict:
    principal = _validate_amount_and_period(amount, period_days)
    rate = settings.CREDIT_INTEREST_RATE
    interest = to_money(principal * rate / Decimal("100") * Decimal(period_days) / Decimal("365"))
    today = today or date.today()
    return {
        "principal": principal,
        "interest_rate": rate,
        "period_days": period_days,
        "interest_amount": interest,
        "total_repayment": principal + interest,
        "due_date": today + timedelta(days=period_days),
    }


def refresh_overdue_loans(db: Session, user_id: str, today: Optional[date] = None) -> int:
    """Flag active loans past their due date that still have a balance."""
    today = today or date.today()
    loans = db.query(Loan).filter(
        Loan.user_id == user_id,
        Loan.status == "active",
        Loan.due_date < today,
        Loan.remaining_amount > 0,
    ).all()
    for loan in loans:
        loan.status = "overdue"
    if loans:
        db.commit()
        logger.info(f"Marked {len(loans)} loan(s) overdue for user {user_id}")
    return len(loans)


def list_loans(db: Session, user_id: str) -> list[Loan]:
    refresh_overdue_loans(db, user_id)
    return db.query(Loan).filter(Loan.user_id == user_id).order_by(Loan.created_at.desc()).all()


def list_loan_payments(db: Session, user_id: str) -> list[LoanPayment]:
    return (
        db.query(LoanPayment)
        .join(Loan, LoanPayment.loan_id == Loan.id)
        .filter(Loan.user_id == user_id)
        .order_by(LoanPayment.paid_at.desc())
        .all()
    )


def get_loan(db: Session, user_id: str, loan_id: str) -> Loan:
    loan = db.query(Loan).filter(Loan.id == loan_id, Loan.user_id == user_id).first()
    if not loan:
        raise BusinessError.not_found("Loan", reason=f"loan {loan_id} for user {user_id}")
    return loan


def total_outstanding(db: Session, user_id: str) -> Decimal:
    loans = db.query(Loan).filter(Loan.user_id == user_id, Loan.status != "paid").all()
    return to_money(sum((Decimal(loan.remaining_amount) for loan in loans), Decimal("0")))


def available_credit(db: Session, user_id: str) -> Decimal:
    return max(to_money(settings.CREDIT_LIMIT) - total_outstanding(db, user_id), Decimal("0.00"))


def payment_history(db: Session, user_id: str) -> dict:
    """
    on_time: repayments made on or before the loan due date
    late: repayments made after it
    missed: overdue loans that still carry a balance
    """
    on_time = late = 0
    for payment in list_loan_payments(db, user_id):
        if payment.paid_at.date() <= payment.loan.due_date:
            on_time += 1
        else:
            late += 1
    missed = db.query(Loan).filter(Loan.user_id == user_id, Loan.status == "overdue").count()
    return {"on_time": on_time, "late": late, "missed": missed}


def credit_score(history: dict) -> int:
    score = (
        settings.BASE_CREDIT_SCORE
        + ON_TIME_POINTS * history["on_time"]
        - LATE_PENALTY * history["late"]
        - MISSED_PENALTY * history["missed"]
    )
    return max(MIN_CREDIT_SCORE, min(MAX_CREDIT_SCORE, score))


def get_credit_profile(db: Session, user_id: str) -> dict:
    refresh_overdue_loans(db, user_id)
    history = payment_history(db, user_id)
    score = credit_score(history)
    outstanding = total_outstanding(db, user_id)

    next_loan = (
        db.query(Loan)
        .filter(Loan.user_id == user_id, Loan.status != "paid")
        .order_by(Loan.due_date.asc())
        .first()
    )
    return {
        "credit_score": score,
        "rating": credit_rating(score),
        "max_credit_limit": to_money(settings.CREDIT_LIMIT),
        "available_credit": max(to_money(settings.CREDIT_LIMIT) - outstanding, Decimal("0.00")),
        "total_outstanding": outstanding,
        "interest_rate": settings.CREDIT_INTEREST_RATE,
        "next_payment_due": next_loan.due_date if next_loan else None,
        "next_payment_amount": to_money(next_loan.remaining_amount) if next_loan else Decimal("0.00"),
        "payment_history": history,
    }


def apply_for_loan(db: Session, user_id: str, data: LoanApplication) -> Loan:
    preview = loan_preview(data.amount, data.period_days)
    principal = preview["principal"]

    if principal < settings.MIN_LOAN_AMOUNT:
        raise BusinessError.bad_request(
            f"Minimum loan amount is {settings.CURRENCY} {to_money(settings.MIN_LOAN_AMOUNT):,}"
        )
    available = available_credit(db, user_id)
    if principal > available:
        raise BusinessError.bad_request(
            "Loan amount exceeds available credit",
            {"requested_amount": float(principal), "available_credit": float(available)},
        )

    if data.purpose not in LOAN_PURPOSES:
        raise BusinessError.bad_request(f"Purpose must be one of: {', '.join(LOAN_PURPOSES)}")
    purpose = LOAN_PURPOSES[data.purpose]
    if data.purpose == "other":
        if not (data.purpose_other or "").strip():
            raise BusinessError.bad_request("Please describe the loan purpose")
        purpose = data.purpose_other.strip()[:255]

    source = (data.expected_repayment_source or "").strip()
    if not source:
        raise BusinessError.bad_request("Expected repayment source is required")

    loan = Loan(
        user_id=user_id,
        amount=principal,
        interest_rate=preview["interest_rate"],
        period_days=data.period_days,
        purpose=purpose,
        expected_repayment_source=source[:255],
        start_date=date.today(),
        due_date=preview["due_date"],
        interest_amount=preview["interest_amount"],
        total_repayment=preview["total_repayment"],
        remaining_amount=preview["total_repayment"],
        status="active",
    )
    db.add(loan)
    db.commit()
    db.refresh(loan)
    AuditLog.log_action("create", "loan", loan.id, user_id, changes={
        "amount": str(principal),
        "period_days": data.period_days,
    })
    return loan


def repay_loan(db: Session, user_id: str, loan_id: str, amount, paid_at: Optional[datetime] = None) -> Loan:
    loan = get_loan(db, user_id, loan_id)
    if loan.status == "paid":
        raise BusinessError.bad_request("Loan is already fully repaid")

    value = positive_amount(amount)
    remaining = to_money(loan.remaining_amount)
    if value > remaining:
        raise BusinessError.bad_request(
            "Repayment exceeds the remaining balance",
            {"requested_amount": float(value), "remaining_amount": float(remaining)},
        )

    loan.payments.append(LoanPayment(amount=value, paid_at=paid_at or utcnow()))
    loan.remaining_amount = remaining - value
    if loan.remaining_amount == 0:
        loan.status = "paid"
    db.commit()
    db.refresh(loan)
    AuditLog.log_action("repay", "loan", loan.id, user_id, changes={
        "amount": str(value),
        "remaining": str(loan.remaining_amount),
    })
    return loan
