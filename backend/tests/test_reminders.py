from datetime import date

import pytest
import requests

from pesaflip.core.config import settings
from pesaflip.jobs import invoice_reminders
from pesaflip.jobs.invoice_reminders import get_reminder_type, send_invoice_reminders
from pesaflip.models.invoice import Invoice
from pesaflip.services import email_service

TODAY = date(2025, 6, 10)


class FakeResponse:
    text = "OK"

    def raise_for_status(self):
        pass


@pytest.fixture
def emailjs(monkeypatch):
    """Configure EmailJS and capture outgoing requests instead of sending them."""
    monkeypatch.setattr(settings, "EMAILJS_SERVICE_ID", "service_test")
    monkeypatch.setattr(settings, "EMAILJS_TEMPLATE_ID", "template_test")
    monkeypatch.setattr(settings, "EMAILJS_PUBLIC_KEY", "public_test")
    sent = []

    def fake_post(url, json=None, timeout=None):
        sent.append(json)
        return FakeResponse()

    monkeypatch.setattr(email_service.requests, "post", fake_post)
    return sent


def add_invoice(client, headers, due_date, status="sent", client_name="Acme Co"):
    response = client.post("/api/invoices", headers=headers, json={
        "client_name": client_name,
        "client_email": "billing@acme.co.ke",
        "title": f"Work due {due_date}",
        "issue_date": "2025-05-01",
        "due_date": due_date,
        "status": status,
        "items": [{"description": "Consulting", "quantity": 1, "unit_price": 1000}],
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.parametrize("due_date, expected", [
    (date(2025, 6, 13), "before"),
    (date(2025, 6, 10), "due"),
    (date(2025, 6, 7), "overdue"),
    (date(2025, 6, 12), None),
    (date(2025, 6, 1), None),
])
def test_get_reminder_type(due_date, expected):
    assert get_reminder_type(due_date, TODAY) == expected


def test_send_reminders_and_mark_overdue(client, auth_headers, db, emailjs):
    add_invoice(client, auth_headers, "2025-06-13", client_name="Before Ltd")
    add_invoice(client, auth_headers, "2025-06-10", client_name="Due Ltd")
    late = add_invoice(client, auth_headers, "2025-06-07", client_name="Late Ltd")
    add_invoice(client, auth_headers, "2025-06-12")
    add_invoice(client, auth_headers, "2025-06-20")
    add_invoice(client, auth_headers, "2025-06-10", status="draft")

    result = send_invoice_reminders(db, today=TODAY)

    assert result == {"checked": 4, "sent": 3, "failed": 0, "marked_overdue": 1}
    assert {p["template_params"]["to_email"] for p in emailjs} == {"jane@example.co.ke"}
    subjects = [p["template_params"]["subject"] for p in emailjs]
    assert any(s.startswith("OVERDUE:") for s in subjects)
    assert emailjs[0]["service_id"] == "service_test"

    db.expire_all()
    assert db.get(Invoice, late["id"]).status == "overdue"


def test_reminder_failures_are_counted(client, auth_headers, db, monkeypatch, emailjs):
    add_invoice(client, auth_headers, "2025-06-10")

    def broken_post(url, json=None, timeout=None):
        raise requests.ConnectionError("network down")

    monkeypatch.setattr(email_service.requests, "post", broken_post)
    result = send_invoice_reminders(db, today=TODAY)
    assert result["sent"] == 0
    assert result["failed"] == 1


def test_unconfigured_email_counts_as_failed(client, auth_headers, db):
    add_invoice(client, auth_headers, "2025-06-13")
    result = send_invoice_reminders(db, today=TODAY)
    assert result == {"checked": 1, "sent": 0, "failed": 1, "marked_overdue": 0}


def test_owner_without_email_is_skipped(client, db, emailjs):
    from tests.conftest import bearer, register

    _, token = register(client, phone_number="+254733000000", name="Otieno")
    add_invoice(client, bearer(token), "2025-06-10")

    result = send_invoice_reminders(db, today=TODAY)
    assert result["failed"] == 1
    assert emailjs == []


def test_build_reminder_wording():
    invoice = Invoice(invoice_number="INV-2025-1234", total=14500, client_name="Acme Co", due_date=date(2025, 6, 13))
    reminder = email_service.build_reminder(invoice, TODAY)
    assert reminder["subject"] == "Reminder: Invoice INV-2025-1234 Due on June 13, 2025"
    assert "KES 14,500.00" in reminder["message"]
    assert reminder["template_params"]["is_overdue"] is False


def test_admin_job_endpoints(client, auth_headers, admin_headers):
    assert client.post("/api/admin/jobs/invoice-reminders", headers=auth_headers).status_code == 403

    status = client.get("/api/admin/jobs/invoice-reminders", headers=admin_headers).json()["data"]
    assert status == {"last_run": None, "last_result": None, "is_running": False}

    response = client.post("/api/admin/jobs/invoice-reminders", headers=admin_headers)
    assert response.status_code == 200
    assert set(response.json()["data"]) == {"checked", "sent", "failed", "marked_overdue"}

    status = client.get("/api/admin/jobs/invoice-reminders", headers=admin_headers).json()["data"]
    assert status["last_run"] is not None


def test_admin_job_conflict_while_running(client, admin_headers):
    invoice_reminders._run_lock.acquire()
    try:
        response = client.post("/api/admin/jobs/invoice-reminders", headers=admin_headers)
    finally:
        invoice_reminders._run_lock.release()
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Invoice reminder job is already running"
