"""
Wallet ledger. Balance changes and the transaction row that explains them
go out in one commit; any failure rolls both back.

Balance never goes negative: checked here and by chk_wallet_balance.
"""
import logging
import random
import time
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pesaflip.core.audit import AuditLog
from pesaflip.core.exceptions import BusinessError
from pesaflip.models.wallet import Wallet, WalletTransaction, TRANSACTION_TYPES, TRANSACTION_STATUSES
from pesaflip.services.money import positive_amount, to_money

logger = logging.getLogger(__name__)

TOPUP_METHODS = ("mpesa", "card", "bank")
WITHDRAW_DESTINATIONS = ("mpesa", "bank")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


def generate_reference(prefix: str) -> str:
    """e.g. TOP4829173051 - last 6 digits of epoch ms plus a 0-9999 suffix."""
    millis = str(int(time.time() * 1000))[-6:]
    return f"{prefix}{millis}{random.randint(0, 9999)}"


def mask_card_number(card_number: str) -> str:
    digits = "".join(c for c in card_number if c.isdigit())
    if len(digits) < 4:
        return "****"
    return f"**** **** **** {digits[-4:]}"


def get_or_create_wallet(db: Session, user_id: str) -> Wallet:
    """Lazily create a zero-balance wallet on first access."""
    wallet = db.query(Wallet).filter(Wallet.user_id == user_id).first()
    if wallet:
        return wallet

    wallet = Wallet(user_id=user_id, balance=Decimal("0.00"))
    db.add(wallet)
    try:
        db.commit()
    except IntegrityError:
        # Another request created it first
        db.rollback()
        return db.query(Wallet).filter(Wallet.user_id == user_id).one()
    db.refresh(wallet)
    logger.info(f"Created wallet {wallet.id} for user {user_id}")
    return wallet


def get_wallet_balance(db: Session, user_id: str) -> Decimal:
    wallet = get_or_create_wallet(db, user_id)
    return to_money(wallet.balance)


def _apply_movement(
    db: Session,
    user_id: str,
    wallet: Wallet,
    txn_type: str,
    amount: Decimal,
    new_balance: Decimal,
    method: str,
    reference: str,
    recipient_info: Optional[str],
) -> WalletTransaction:
    """Write balance + transaction record atomically."""
    txn = WalletTransaction(
        wallet_id=wallet.id,
        type=txn_type,
        amount=amount,
        status="completed",
        method=method,
        reference=reference,
        recipient_info=recipient_info,
    )
    try:
        wallet.balance = new_balance
        db.add(txn)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Wallet {wallet.id} {txn_type} rejected by constraint: {e.orig}")
        raise BusinessError.bad_request("Insufficient funds")
    except SQLAlchemyError as e:
        db.rollback()
        raise BusinessError.server_error(e, "Failed to process wallet transaction")

    db.refresh(txn)
    AuditLog.log_wallet_movement(txn_type, user_id, wallet.id, amount, new_balance, txn.id, method)
    return txn


def top_up_wallet(
    db: Session,
    user_id: str,
    amount,
    method: str,
    mobile_number: Optional[str] = None,
    card_number: Optional[str] = None,
    reference: Optional[str] = None,
) -> dict:
    """
    Add funds to the user's wallet.

    Returns dict with new_balance, transaction_id and reference.
    """
    value = positive_amount(amount)
    method = (method or "").lower()
    if method not in TOPUP_METHODS:
        raise BusinessError.bad_request(f"Payment method must be one of: {', '.join(TOPUP_METHODS)}")

    if method == "mpesa":
        if not mobile_number:
            raise BusinessError.bad_request("Mobile number is required for M-PESA payments")
        recipient_info = mobile_number
    elif method == "card":
        if not card_number:
            raise BusinessError.bad_request("Card number is required for card payments")
        recipient_info = mask_card_number(card_number)
    else:
        recipient_info = None

    wallet = get_or_create_wallet(db, user_id)
    new_balance = to_money(wallet.balance) + value
    reference = reference or generate_reference("TOP")

    txn = _apply_movement(db, user_id, wallet, "topup", value, new_balance, method, reference, recipient_info)
    return {
        "new_balance": new_balance,
        "transaction_id": txn.id,
        "reference": txn.reference,
    }


def withdraw_from_wallet(
    db: Session,
    user_id: str,
    amount,
    destination: str,
    mobile_number: Optional[str] = None,
    account_number: Optional[str] = None,
    reference: Optional[str] = None,
) -> dict:
    """Withdraw funds to M-PESA or a bank account. Fails if amount > balance."""
    value = positive_amount(amount)
    destination = (destination or "").lower()
    if destination not in WITHDRAW_DESTINATIONS:
        raise BusinessError.bad_request(
            f"Destination must be one of: {', '.join(WITHDRAW_DESTINATIONS)}"
        )

    if destination == "mpesa" and not mobile_number:
        raise BusinessError.bad_request("Mobile number is required for M-PESA withdrawals")
    if destination == "bank" and not account_number:
        raise BusinessError.bad_request("Account number is required for bank withdrawals")
    recipient_info = mobile_number if destination == "mpesa" else account_number

    wallet = get_or_create_wallet(db, user_id)
    balance = to_money(wallet.balance)
    if value > balance:
        raise BusinessError.bad_request(
            "Withdrawal amount exceeds available balance",
            {"requested_amount": float(value), "available_balance": float(balance)},
        )

    new_balance = balance - value
    reference = reference or generate_reference("WD")

    txn = _apply_movement(db, user_id, wallet, "withdraw", value, new_balance, destination, reference, recipient_info)
    return {
        "new_balance": new_balance,
        "transaction_id": txn.id,
        "reference": txn.reference,
    }


def _page_param(value, default: int, maximum: Optional[int] = None, minimum: int = 0) -> int:
    """Bad or out-of-range paging values fall back to the default."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < minimum:
        return default
    if maximum is not None and number > maximum:
        return maximum
    return number


def get_transaction_history(
    db: Session,
    user_id: str,
    limit=DEFAULT_PAGE_SIZE,
    offset=0,
    txn_type: Optional[str] = None,
    status: Optional[str] = None,
) -> dict:
    """Newest first. ``total`` counts every row matching the filters, not just this page."""
    limit = _page_param(limit, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, minimum=1)
    offset = _page_param(offset, 0)

    if txn_type and txn_type not in TRANSACTION_TYPES:
        raise BusinessError.bad_request(f"Transaction type must be one of: {', '.join(TRANSACTION_TYPES)}")
    if status and status not in TRANSACTION_STATUSES:
        raise BusinessError.bad_request(f"Transaction status must be one of: {', '.join(TRANSACTION_STATUSES)}")

    wallet = get_or_create_wallet(db, user_id)
    query = db.query(WalletTransaction).filter(WalletTransaction.wallet_id == wallet.id)
    if txn_type:
        query = query.filter(WalletTransaction.type == txn_type)
    if status:
        query = query.filter(WalletTransaction.status == status)

    total = query.count()
    rows = (
        query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "transactions": rows,
        "pagination": {"limit": limit, "offset": offset, "total": total},
    }


def get_recent_transactions(db: Session, user_id: str, count: int = 5) -> list:
    return get_transaction_history(db, user_id, limit=count)["transactions"]
