"""
Credit line loans. Simple interest, fixed term; repayments reduce
remaining_amount until the loan is paid.
"""
from sqlalchemy import Column, String, ForeignKey, Numeric, Integer, DateTime, Date, CheckConstraint
from sqlalchemy.orm import relationship

from pesaflip.db.base import Base, generate_id, utcnow

LOAN_PERIODS = (30, 60, 90, 180, 365)
LOAN_PURPOSES = {
    "inventory": "Inventory Purchase",
    "equipment": "Equipment Purchase",
    "expansion": "Business Expansion",
    "operations": "Working Capital/Operations",
    "marketing": "Marketing & Advertising",
    "other": "Other",
}


class Loan(Base):
    __tablename__ = "loans"
    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_loan_amount"),
        CheckConstraint("remaining_amount >= 0", name="chk_loan_remaining"),
        CheckConstraint(
            "status IN ('active', 'paid', 'overdue')",
            name="chk_loan_status",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(20, 2), nullable=False)  # principal
    interest_rate = Column(Numeric(5, 2), nullable=False)  # APR percent
    period_days = Column(Integer, nullable=False)
    purpose = Column(String(255), nullable=False)
    expected_repayment_source = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    interest_amount = Column(Numeric(20, 2), nullable=False)
    total_repayment = Column(Numeric(20, 2), nullable=False)
    remaining_amount = Column(Numeric(20, 2), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", backref="loans")
    payments = relationship(
        "LoanPayment",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="LoanPayment.paid_at",
    )


class LoanPayment(Base):
    __tablename__ = "loan_payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_loan_payment_amount"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    loan_id = Column(String(36), ForeignKey("loans.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(20, 2), nullable=False)
    paid_at = Column(DateTime, nullable=False, default=utcnow)

    loan = relationship("Loan", back_populates="payments")
