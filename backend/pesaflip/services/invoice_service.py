"""Invoices: creation with derived totals, status workflow, received payments."""
import logging
import random
import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pesaflip.core.audit import AuditLog
from pesaflip.core.config import settings
from pesaflip.core.exceptions import BusinessError
from pesaflip.models.invoice import Invoice, InvoiceItem, InvoicePayment, INVOICE_STATUSES
from pesaflip.schemas.invoice import InvoiceCreate, InvoicePaymentCreate
from pesaflip.services.money import percent_of, positive_amount, to_money

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_DAYS = 14
CREATE_STATUSES = ("draft", "sent")
PAYMENT_METHODS = ("mpesa", "card")

# paid and cancelled are terminal
STATUS_TRANSITIONS = {
    "draft": ("sent", "cancelled"),
    "sent": ("paid", "overdue", "cancelled"),
    "overdue": ("paid", "cancelled"),
    "paid": (),
    "cancelled": (),
}
PAYABLE_STATUSES = ("sent", "overdue")

_NUMBER_ATTEMPTS = 20


def sanitize_text(value: Optional[str], max_length: int) -> Optional[str]:
    """Collapse whitespace, strip markup, and truncate free-text fields."""
    if value is None:
        return None
    value = " ".join(value.strip().split())
    value = re.sub(r"<\s*/?\s*script[^>]*>", "", value, flags=re.IGNORECASE)
    value = re.sub(r"javascript:", "", value, flags=re.IGNORECASE)
    return value[:max_length] or None


def payment_days(payment_terms: Optional[str]) -> int:
    """Days from terms like "30" or "Net 30"; 14 when there is no number."""
    if payment_terms:
        match = re.search(r"\d+", payment_terms)
        if match:
            return int(match.group())
    return DEFAULT_PAYMENT_DAYS


def calculate_totals(items, tax_rate) -> dict:
    """
    Line amounts, subtotal, tax and total for a list of items.

    Args:
        items: iterable of objects with quantity and unit_price
        tax_rate: percent, e.g. 16 for Kenyan VAT

    Returns:
        dict with line_amounts, subtotal, tax_amount, total
    """
    line_amounts = [to_money(Decimal(item.quantity) * Decimal(item.unit_price)) for item in items]
    subtotal = to_money(sum(line_amounts, Decimal("0")))
    tax_amount = percent_of(subtotal, tax_rate)
    return {
        "line_amounts": line_amounts,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": to_money(subtotal + tax_amount),
    }


def generate_invoice_number(db: Session, user_id: str, year: Optional[int] = None) -> str:
    """INV-<year>-<4 digits>, unique for this user."""
    year = year or date.today().year
    for _ in range(_NUMBER_ATTEMPTS):
        candidate = f"INV-{year}-{random.randint(1000, 9999)}"
        if not _number_taken(db, user_id, candidate):
            return candidate

    # Random space is crowded; walk upward from the user's invoice count
    seq = db.query(Invoice).filter(Invoice.user_id == user_id).count() + 1
    while True:
        candidate = f"INV-{year}-{seq:04d}"
        if not _number_taken(db, user_id, candidate):
            return candidate
        seq += 1


def _number_taken(db: Session, user_id: str, invoice_number: str) -> bool:
    return db.query(Invoice.id).filter(
        Invoice.user_id == user_id,
        Invoice.invoice_number == invoice_number,
    ).first() is not None


def create_invoice(db: Session, user_id: str, data: InvoiceCreate) -> Invoice:
    if data.status not in CREATE_STATUSES:
        raise BusinessError.bad_request(f"Status must be one of: {', '.join(CREATE_STATUSES)}")

    issue_date = data.issue_date or date.today()
    payment_terms = (data.payment_terms or "").strip() or str(DEFAULT_PAYMENT_DAYS)
    due_date = data.due_date or issue_date + timedelta(days=payment_days(payment_terms))
    if due_date < issue_date:
        raise BusinessError.bad_request("Due date cannot be before the issue date")

    client_name = sanitize_text(data.client_name, 100)
    title = sanitize_text(data.title, 200)
    if not client_name or not title:
        raise BusinessError.bad_request("Client name and title are required")

    item_descriptions = [sanitize_text(item.description, 500) for item in data.items]
    if not all(item_descriptions):
        raise BusinessError.bad_request("Every item needs a description")

    tax_rate = data.tax_rate if data.tax_rate is not None else settings.DEFAULT_TAX_RATE
    try:
        totals = calculate_totals(data.items, tax_rate)
    except ValueError:
        raise BusinessError.bad_request("Item amounts are too large")

    if data.invoice_number:
        invoice_number = data.invoice_number.strip()
        if _number_taken(db, user_id, invoice_number):
            raise BusinessError.conflict(f"Invoice number {invoice_number} already exists")
    else:
        invoice_number = generate_invoice_number(db, user_id, issue_date.year)

    invoice = Invoice(
        user_id=user_id,
        client_id=data.client_id,
        client_name=client_name,
        client_email=str(data.client_email),
        client_address=sanitize_text(data.client_address, 255),
        invoice_number=invoice_number,
        title=title,
        description=sanitize_text(data.description, 1000),
        issue_date=issue_date,
        due_date=due_date,
        payment_terms=payment_terms,
        tax_rate=to_money(tax_rate),
        tax_amount=totals["tax_amount"],
        subtotal=totals["subtotal"],
        total=totals["total"],
        status=data.status,
        notes=data.notes,
    )
    for position, (item, description, amount) in enumerate(zip(data.items, item_descriptions, totals["line_amounts"])):
        invoice.items.append(InvoiceItem(
            position=position,
            description=description,
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            amount=amount,
        ))

    db.add(invoice)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise BusinessError.server_error(e, "Failed to create invoice")
    db.refresh(invoice)

    AuditLog.log_action("create", "invoice", invoice.id, user_id, changes={
        "invoice_number": invoice.invoice_number,
        "total": str(invoice.total),
    })
    logger.info(f"Invoice {invoice.invoice_number} created for user {user_id}")
    return invoice


def get_invoice(db: Session, user_id: str, invoice_id: str) -> Invoice:
    """Same 404 whether the invoice is missing or belongs to someone else."""
    invoice = db.query(Invoice).filter(
        Invoice.id == invoice_id,
        Invoice.user_id == user_id,
    ).first()
    if not invoice:
        raise BusinessError.not_found("Invoice", reason=f"invoice {invoice_id} for user {user_id}")
    return invoice


def list_invoices(
    db: Session,
    user_id: str,
    status: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> dict:
    if status and status not in INVOICE_STATUSES:
        raise BusinessError.bad_request(f"Status must be one of: {', '.join(INVOICE_STATUSES)}")

    query = db.query(Invoice).filter(Invoice.user_id == user_id)
    if status:
        query = query.filter(Invoice.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Invoice.client_name.ilike(pattern),
            Invoice.invoice_number.ilike(pattern),
            Invoice.title.ilike(pattern),
        ))

    total = query.count()
    rows = query.order_by(Invoice.created_at.desc()).offset(offset).limit(limit).all()
    return {
        "invoices": rows,
        "pagination": {"limit": limit, "offset": offset, "total": total},
    }


def amount_paid(invoice: Invoice) -> Decimal:
    return to_money(sum((Decimal(p.amount) for p in invoice.payments), Decimal("0")))


def balance_due(invoice: Invoice) -> Decimal:
    return max(to_money(invoice.total) - amount_paid(invoice), Decimal("0.00"))


def update_invoice_status(db: Session, user_id: str, invoice_id: str, new_status: str) -> Invoice:
    invoice = get_invoice(db, user_id, invoice_id)
    if new_status not in INVOICE_STATUSES:
        raise BusinessError.bad_request(f"Status must be one of: {', '.join(INVOICE_STATUSES)}")
    if new_status == invoice.status:
        return invoice

    allowed = STATUS_TRANSITIONS[invoice.status]
    if new_status not in allowed:
        raise BusinessError.bad_request(
            f"Cannot change invoice status from {invoice.status} to {new_status}",
            {"current_status": invoice.status, "allowed": list(allowed)},
        )

    old_status = invoice.status
    invoice.status = new_status
    db.commit()
    db.refresh(invoice)
    AuditLog.log_action("status", "invoice", invoice.id, user_id, changes={"from": old_status, "to": new_status})
    return invoice


def record_payment(db: Session, user_id: str, invoice_id: str, data: InvoicePaymentCreate) -> Invoice:
    """Record money received from the client. A fully paid invoice moves to ``paid``."""
    invoice = get_invoice(db, user_id, invoice_id)
    if invoice.status not in PAYABLE_STATUSES:
        raise BusinessError.bad_request(f"Cannot record a payment on a {invoice.status} invoice")

    method = (data.method or "").lower()
    if method not in PAYMENT_METHODS:
        raise BusinessError.bad_request(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}")

    amount = positive_amount(data.amount)

    outstanding = balance_due(invoice)
    if amount > outstanding:
        raise BusinessError.bad_request(
            "Payment exceeds the outstanding balance",
            {"requested_amount": float(amount), "balance_due": float(outstanding)},
        )

    invoice.payments.append(InvoicePayment(
        amount=amount,
        method=method,
        payer_name=data.payer_name,
        payer_phone=data.payer_phone,
        transaction_id=data.transaction_id,
    ))
    if amount == outstanding:
        invoice.status = "paid"

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise BusinessError.server_error(e, "Failed to record payment")
    db.refresh(invoice)

    AuditLog.log_action("payment", "invoice", invoice.id, user_id, changes={
        "amount": str(amount),
        "method": method,
        "status": invoice.status,
    })
    return invoice


def delete_invoice(db: Session, user_id: str, invoice_id: str) -> None:
    invoice = get_invoice(db, user_id, invoice_id)
    if invoice.status != "draft":
        raise BusinessError.bad_request("Only draft invoices can be deleted")
    db.delete(invoice)
    db.commit()
    AuditLog.log_action("delete", "invoice", invoice_id, user_id)


def invoice_detail(invoice: Invoice) -> dict:
    """Attribute dict for InvoiceRecord, including paid/outstanding amounts."""
    return {
        **{c.name: getattr(invoice, c.name) for c in Invoice.__table__.columns},
        "amount_paid": amount_paid(invoice),
        "balance_due": balance_due(invoice),
        "items": invoice.items,
        "payments": invoice.payments,
    }


def export_rows(db: Session, user_id: str) -> list:
    return (
        db.query(Invoice)
        .filter(Invoice.user_id == user_id)
        .order_by(Invoice.issue_date.desc(), Invoice.created_at.desc())
        .all()
    )
