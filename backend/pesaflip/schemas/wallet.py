from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class TopUpRequest(BaseModel):
    amount: Decimal
    method: str
    mobile_number: Optional[str] = None
    card_number: Optional[str] = None
    reference: Optional[str] = None


class WithdrawRequest(BaseModel):
    amount: Decimal
    destination: str
    mobile_number: Optional[str] = None
    account_number: Optional[str] = None
    reference: Optional[str] = None


class BalanceResponse(BaseModel):
    balance: float
    currency: str


class WalletOperationResult(BaseModel):
    new_balance: float
    transaction_id: str
    reference: str


class TransactionRecord(BaseModel):
    id: str
    type: str
    amount: float
    status: str
    method: str
    reference: Optional[str] = None
    recipient_info: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int


class TransactionPage(BaseModel):
    transactions: List[TransactionRecord]
    pagination: Pagination
