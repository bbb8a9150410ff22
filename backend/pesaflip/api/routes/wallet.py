"""Wallet: balance, top-up, withdrawal and transaction history."""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, get_current_user_id
from pesaflip.core.config import settings
from pesaflip.core.exceptions import success_response
from pesaflip.schemas.wallet import (
    BalanceResponse,
    TopUpRequest,
    TransactionPage,
    WalletOperationResult,
    WithdrawRequest,
)
from pesaflip.services import wallet_service

router = APIRouter()


@router.get("/balance")
def get_balance(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    balance = wallet_service.get_wallet_balance(db, user_id)
    return success_response(BalanceResponse(balance=balance, currency=settings.CURRENCY))


@router.post("/topup", status_code=status.HTTP_201_CREATED)
def top_up(
    data: TopUpRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = wallet_service.top_up_wallet(
        db,
        user_id,
        data.amount,
        data.method,
        mobile_number=data.mobile_number,
        card_number=data.card_number,
        reference=data.reference,
    )
    return success_response(WalletOperationResult(**result), "Wallet top-up successful")


@router.post("/withdraw")
def withdraw(
    data: WithdrawRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = wallet_service.withdraw_from_wallet(
        db,
        user_id,
        data.amount,
        data.destination,
        mobile_number=data.mobile_number,
        account_number=data.account_number,
        reference=data.reference,
    )
    return success_response(WalletOperationResult(**result), "Wallet withdrawal successful")


@router.get("/transactions")
def list_transactions(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Paged history, newest first. Unparseable limit/offset fall back to defaults."""
    page = wallet_service.get_transaction_history(
        db,
        user_id,
        limit=limit if limit is not None else wallet_service.DEFAULT_PAGE_SIZE,
        offset=offset if offset is not None else 0,
        txn_type=type,
        status=status,
    )
    return success_response(TransactionPage.model_validate(page))
