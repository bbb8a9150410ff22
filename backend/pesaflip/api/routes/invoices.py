"""Invoices: CRUD, status workflow, client payments, PDF and CSV export."""
import csv
import io
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, get_current_user
from pesaflip.core.exceptions import success_response
from pesaflip.models.user import User
from pesaflip.schemas.invoice import (
    InvoiceCreate,
    InvoicePage,
    InvoicePaymentCreate,
    InvoiceRecord,
    InvoiceStatusUpdate,
)
from pesaflip.services import invoice_service, pdf_service

router = APIRouter()


def _record(invoice) -> InvoiceRecord:
    return InvoiceRecord.model_validate(invoice_service.invoice_detail(invoice))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.create_invoice(db, current_user.id, data)
    return success_response(_record(invoice), "Invoice created")


@router.get("")
def list_invoices(
    status: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    page = invoice_service.list_invoices(db, current_user.id, status, search, limit, offset)
    return success_response(InvoicePage.model_validate(page))


# ==============================================================================
# EXPORT ENDPOINTS (CSV Download) - declared before /{invoice_id}
# ==============================================================================

@router.get("/export/csv")
def export_invoices_csv(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Export all invoices as CSV file."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "Invoice Number", "Client", "Client Email", "Title", "Issue Date", "Due Date",
        "Subtotal", "Tax", "Total", "Paid", "Balance Due", "Status",
    ])
    for inv in invoice_service.export_rows(db, current_user.id):
        writer.writerow([
            inv.invoice_number,
            inv.client_name,
            inv.client_email,
            inv.title,
            inv.issue_date.isoformat(),
            inv.due_date.isoformat(),
            f"{inv.subtotal:.2f}",
            f"{inv.tax_amount:.2f}",
            f"{inv.total:.2f}",
            f"{invoice_service.amount_paid(inv):.2f}",
            f"{invoice_service.balance_due(inv):.2f}",
            inv.status,
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=invoices_{date.today()}.csv"},
    )


@router.get("/{invoice_id}")
def get_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.get_invoice(db, current_user.id, invoice_id)
    return success_response(_record(invoice))


@router.patch("/{invoice_id}/status")
def update_invoice_status(
    invoice_id: str,
    data: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.update_invoice_status(db, current_user.id, invoice_id, data.status)
    return success_response(_record(invoice), f"Invoice marked as {invoice.status}")


@router.post("/{invoice_id}/payments", status_code=status.HTTP_201_CREATED)
def record_invoice_payment(
    invoice_id: str,
    data: InvoicePaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.record_payment(db, current_user.id, invoice_id, data)
    return success_response(_record(invoice), "Payment recorded")


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.get_invoice(db, current_user.id, invoice_id)
    buffer = pdf_service.generate_invoice_pdf(invoice, current_user)
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={invoice.invoice_number}.pdf"},
    )


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice_service.delete_invoice(db, current_user.id, invoice_id)
    return success_response({"id": invoice_id}, "Invoice deleted")
