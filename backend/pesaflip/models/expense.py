from sqlalchemy import Column, String, ForeignKey, Numeric, DateTime, Date, CheckConstraint
from sqlalchemy.orm import relationship

from pesaflip.db.base import Base, generate_id, utcnow

EXPENSE_CATEGORIES = {
    "office-supplies": "Office Supplies",
    "rent": "Rent",
    "utilities": "Utilities",
    "salaries": "Salaries",
    "marketing": "Marketing",
    "travel": "Travel",
    "software": "Software",
    "other": "Other",
}
EXPENSE_STATUSES = ("pending", "approved", "rejected")


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_expense_amount"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="chk_expense_status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    category = Column(String(50), nullable=False)
    amount = Column(Numeric(20, 2), nullable=False)
    description = Column(String(500), nullable=False)
    receipt = Column(String(255), nullable=True)  # receipt file URL/path
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", backref="expenses")
