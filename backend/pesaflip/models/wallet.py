"""
Wallet ledger: one wallet per user plus its transaction history.
Balance is never negative (enforced by the service and a CHECK constraint).
"""
from sqlalchemy import Column, String, ForeignKey, Numeric, DateTime, CheckConstraint, Index
from sqlalchemy.orm import relationship

from pesaflip.db.base import Base, generate_id, utcnow

TRANSACTION_TYPES = ("topup", "withdraw")
TRANSACTION_STATUSES = ("pending", "completed", "failed")


class Wallet(Base):
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="chk_wallet_balance"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    balance = Column(Numeric(20, 2), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", backref="wallet")


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("type IN ('topup', 'withdraw')", name="chk_transaction_type"),
        CheckConstraint("status IN ('pending', 'completed', 'failed')", name="chk_transaction_status"),
        CheckConstraint("amount > 0", name="chk_transaction_amount"),
        Index("idx_wallet_txn_wallet_type_status", "wallet_id", "type", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    wallet_id = Column(String(36), ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(20, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    method = Column(String(50), nullable=False)  # mpesa | card | bank
    reference = Column(String(100), nullable=True)
    recipient_info = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    wallet = relationship("Wallet", backref="transactions")
