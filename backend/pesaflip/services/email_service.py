"""
Outgoing e-mail through the EmailJS REST API.

Reminders go to the invoice owner (the business), not the client.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from pesaflip.core.config import settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10


class EmailError(Exception):
    """E-mail could not be handed to EmailJS."""


def is_configured() -> bool:
    return bool(
        settings.EMAILJS_SERVICE_ID
        and settings.EMAILJS_TEMPLATE_ID
        and settings.EMAILJS_PUBLIC_KEY
    )


def send_email(
    to: str,
    subject: str,
    message: str,
    to_name: Optional[str] = None,
    template_params: Optional[Dict[str, Any]] = None,
) -> str:
    """Send one templated e-mail. Returns the EmailJS response text; raises EmailError."""
    if not is_configured():
        raise EmailError("EmailJS is not configured")

    params = {
        "to_email": to,
        "to_name": to_name or to,
        "subject": subject,
        "message": message,
        **(template_params or {}),
    }
    payload = {
        "service_id": settings.EMAILJS_SERVICE_ID,
        "template_id": settings.EMAILJS_TEMPLATE_ID,
        "user_id": settings.EMAILJS_PUBLIC_KEY,
        "template_params": params,
    }
    if settings.EMAILJS_PRIVATE_KEY:
        payload["accessToken"] = settings.EMAILJS_PRIVATE_KEY

    try:
        response = requests.post(
            settings.EMAILJS_API_URL,
            json=payload,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"EmailJS send to {to} failed: {e}")
        raise EmailError(str(e)) from e

    logger.info(f"Email sent to {to}: {subject}")
    return response.text


def format_amount(amount) -> str:
    return f"{settings.CURRENCY} {Decimal(str(amount)):,.2f}"


def format_due_date(due_date: date) -> str:
    return f"{due_date.strftime('%B')} {due_date.day}, {due_date.year}"


def build_reminder(invoice, today: Optional[date] = None) -> Dict[str, Any]:
    """Subject, message and template params for an invoice reminder."""
    today = today or date.today()
    is_overdue = invoice.due_date < today
    due = format_due_date(invoice.due_date)
    amount = format_amount(invoice.total)

    if is_overdue:
        subject = f"OVERDUE: Invoice {invoice.invoice_number} Payment Required"
        message = (
            f"Your invoice {invoice.invoice_number} for {amount} to {invoice.client_name} "
            f"was due on {due} and is now overdue.\n\n"
            "Please make payment at your earliest convenience to avoid late fees.\n\n"
            "You can view the invoice by logging into your PesaFlip account."
        )
    else:
        subject = f"Reminder: Invoice {invoice.invoice_number} Due on {due}"
        message = (
            f"This is a reminder that your invoice {invoice.invoice_number} for {amount} "
            f"to {invoice.client_name} is due on {due}.\n\n"
            "Please ensure payment is made by the due date.\n\n"
            "You can view the invoice by logging into your PesaFlip account."
        )

    return {
        "subject": subject,
        "message": message,
        "template_params": {
            "invoice_number": invoice.invoice_number,
            "invoice_amount": amount,
            "client_name": invoice.client_name,
            "due_date": due,
            "is_overdue": is_overdue,
        },
    }


def send_invoice_due_reminder(invoice, recipient_email: str, recipient_name: str, today: Optional[date] = None) -> str:
    reminder = build_reminder(invoice, today)
    return send_email(
        to=recipient_email,
        to_name=recipient_name,
        subject=reminder["subject"],
        message=reminder["message"],
        template_params=reminder["template_params"],
    )


def send_batch_invoice_reminders(entries, today: Optional[date] = None) -> list[dict]:
    """
    entries: iterable of (invoice, owner_email, owner_name).

    One failure does not stop the batch; each result carries success/error.
    """
    results = []
    for invoice, email, name in entries:
        try:
            send_invoice_due_reminder(invoice, email, name, today)
            results.append({"invoice_number": invoice.invoice_number, "success": True})
        except EmailError as e:
            logger.warning(f"Reminder for invoice {invoice.invoice_number} failed: {e}")
            results.append({
                "invoice_number": invoice.invoice_number,
                "success": False,
                "error": str(e),
            })
    return results
