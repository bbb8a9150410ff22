"""Credit line: profile, loan preview/application, loans and repayments."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, get_current_user_id
from pesaflip.core.exceptions import success_response
from pesaflip.schemas.credit import (
    LoanApplication,
    LoanPaymentRecord,
    LoanPreview,
    LoanPreviewRequest,
    LoanRecord,
    LoanRepayment,
)
from pesaflip.services import credit_service

router = APIRouter()


@router.get("/options")
def loan_options(user_id: str = Depends(get_current_user_id)):
    """Allowed loan periods (days) and purposes for the application form."""
    return success_response({
        "periods": credit_service.list_periods(),
        "purposes": credit_service.list_purposes(),
    })


@router.get("/profile")
def credit_profile(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    return success_response(credit_service.get_credit_profile(db, user_id))


@router.post("/preview")
def preview_loan(data: LoanPreviewRequest, user_id: str = Depends(get_current_user_id)):
    preview = credit_service.loan_preview(data.amount, data.period_days)
    return success_response(LoanPreview(**preview))


@router.post("/loans", status_code=status.HTTP_201_CREATED)
def apply_for_loan(
    data: LoanApplication,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    loan = credit_service.apply_for_loan(db, user_id, data)
    return success_response(LoanRecord.model_validate(loan), "Loan application approved")


@router.get("/loans")
def list_loans(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    loans = credit_service.list_loans(db, user_id)
    return success_response([LoanRecord.model_validate(loan) for loan in loans])


@router.get("/payments")
def list_payments(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    payments = credit_service.list_loan_payments(db, user_id)
    return success_response([LoanPaymentRecord.model_validate(p) for p in payments])


@router.post("/loans/{loan_id}/repay")
def repay_loan(
    loan_id: str,
    data: LoanRepayment,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    loan = credit_service.repay_loan(db, user_id, loan_id, data.amount)
    message = "Loan fully repaid" if loan.status == "paid" else "Repayment recorded"
    return success_response(LoanRecord.model_validate(loan), message)
