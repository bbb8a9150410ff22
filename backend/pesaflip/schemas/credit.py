from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class LoanPreviewRequest(BaseModel):
    amount: Decimal
    period_days: int = 30


class LoanApplication(LoanPreviewRequest):
    purpose: str
    purpose_other: Optional[str] = None
    expected_repayment_source: str


class LoanRepayment(BaseModel):
    amount: Decimal


class LoanPreview(BaseModel):
    principal: float
    interest_rate: float
    period_days: int
    interest_amount: float
    total_repayment: float
    due_date: date


class LoanRecord(BaseModel):
    id: str
    amount: float
    interest_rate: float
    period_days: int
    purpose: str
    expected_repayment_source: Optional[str] = None
    start_date: date
    due_date: date
    interest_amount: float
    total_repayment: float
    remaining_amount: float
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class LoanPaymentRecord(BaseModel):
    id: str
    loan_id: str
    amount: float
    paid_at: datetime

    class Config:
        from_attributes = True
