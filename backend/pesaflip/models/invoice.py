from sqlalchemy import Column, String, ForeignKey, Numeric, Integer, DateTime, Date, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from pesaflip.db.base import Base, generate_id, utcnow

INVOICE_STATUSES = ("draft", "sent", "paid", "overdue", "cancelled")


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'overdue', 'cancelled')",
            name="chk_invoice_status",
        ),
        UniqueConstraint("user_id", "invoice_number", name="uq_invoice_number_per_user"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), nullable=True, index=True)
    client_name = Column(String(100), nullable=False)
    client_email = Column(String(100), nullable=False)
    client_address = Column(String(255), nullable=True)
    invoice_number = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    payment_terms = Column(String(100), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    tax_amount = Column(Numeric(20, 2), nullable=False, default=0)
    subtotal = Column(Numeric(20, 2), nullable=False, default=0)
    total = Column(Numeric(20, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="draft", index=True)
    notes = Column(String(2000), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", backref="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )
    payments = relationship(
        "InvoicePayment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoicePayment.created_at",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_invoice_item_quantity"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String(500), nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    unit_price = Column(Numeric(20, 2), nullable=False, default=0)
    amount = Column(Numeric(20, 2), nullable=False, default=0)  # quantity * unit_price
    created_at = Column(DateTime, nullable=False, default=utcnow)

    invoice = relationship("Invoice", back_populates="items")


class InvoicePayment(Base):
    """Money received from a client against an invoice (M-PESA or card)."""
    __tablename__ = "invoice_payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_invoice_payment_amount"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(20, 2), nullable=False)
    method = Column(String(20), nullable=False)  # mpesa | card
    payer_name = Column(String(100), nullable=True)
    payer_phone = Column(String(20), nullable=True)
    transaction_id = Column(String(50), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    invoice = relationship("Invoice", back_populates="payments")
