from datetime import date
from decimal import Decimal

from pesaflip.services import report_service


def paid_invoice(client, headers, issue_date, unit_price):
    invoice = client.post("/api/invoices", headers=headers, json={
        "client_name": "Acme Co",
        "client_email": "billing@acme.co.ke",
        "title": "Services",
        "issue_date": issue_date,
        "status": "sent",
        "tax_rate": 0,
        "items": [{"description": "Work", "quantity": 1, "unit_price": unit_price}],
    }).json()["data"]
    client.post(f"/api/invoices/{invoice['id']}/payments", headers=headers,
                json={"amount": unit_price, "method": "mpesa"})
    return invoice


def approved_expense(client, headers, expense_date, category, amount):
    expense = client.post("/api/expenses", headers=headers, json={
        "date": expense_date, "category": category, "amount": amount, "description": category,
    }).json()["data"]
    client.patch(f"/api/expenses/{expense['id']}/status", headers=headers, json={"status": "approved"})
    return expense


def seed(client, headers):
    paid_invoice(client, headers, "2025-01-15", 40000)
    paid_invoice(client, headers, "2025-03-02", 60000)
    # Unpaid invoices are receivables, not revenue
    client.post("/api/invoices", headers=headers, json={
        "client_name": "Widget Ltd",
        "client_email": "ap@widget.co.ke",
        "title": "Pending work",
        "issue_date": "2025-03-05",
        "status": "sent",
        "tax_rate": 0,
        "items": [{"description": "Work", "quantity": 1, "unit_price": 15000}],
    })
    approved_expense(client, headers, "2025-01-20", "rent", 30000)
    approved_expense(client, headers, "2025-03-20", "marketing", 10000)
    # Pending expenses are not counted
    client.post("/api/expenses", headers=headers, json={
        "date": "2025-03-21", "category": "travel", "amount": 5000, "description": "Taxi",
    })


def test_summary(client, auth_headers):
    seed(client, auth_headers)
    client.post("/api/wallet/topup", headers=auth_headers, json={
        "amount": 2500, "method": "mpesa", "mobile_number": "+254712345678",
    })

    summary = client.get("/api/reports/summary?year=2025", headers=auth_headers).json()["data"]
    assert summary["total_revenue"] == 100000.0
    assert summary["total_expenses"] == 40000.0
    assert summary["profit"] == 60000.0
    assert summary["outstanding_receivables"] == 15000.0
    assert summary["wallet_balance"] == 2500.0
    assert summary["currency"] == "KES"

    empty_year = client.get("/api/reports/summary?year=2024", headers=auth_headers).json()["data"]
    assert empty_year["total_revenue"] == 0.0


def test_monthly(client, auth_headers):
    seed(client, auth_headers)
    months = client.get("/api/reports/monthly?year=2025", headers=auth_headers).json()["data"]

    assert len(months) == 12
    assert months[0] == {"month": "Jan", "revenue": 40000.0, "expenses": 30000.0, "profit": 10000.0}
    assert months[1]["revenue"] == 0.0
    assert months[2]["profit"] == 50000.0


def test_monthly_csv(client, auth_headers):
    seed(client, auth_headers)
    response = client.get("/api/reports/monthly/export/csv?year=2025", headers=auth_headers)
    lines = response.text.strip().splitlines()
    assert lines[0] == "Month,Revenue,Expenses,Profit"
    assert lines[1] == "Jan,40000.00,30000.00,10000.00"
    assert len(lines) == 13


def test_expense_breakdown(client, auth_headers):
    seed(client, auth_headers)
    breakdown = client.get("/api/reports/expense-breakdown?year=2025", headers=auth_headers).json()["data"]
    assert breakdown == [
        {"category": "rent", "name": "Rent", "amount": 30000.0, "percentage": 75},
        {"category": "marketing", "name": "Marketing", "amount": 10000.0, "percentage": 25},
    ]


def test_breakdown_percentages_round_half_up(client, auth_headers):
    approved_expense(client, auth_headers, "2025-02-01", "rent", 1000)
    approved_expense(client, auth_headers, "2025-02-02", "marketing", 7000)
    breakdown = client.get("/api/reports/expense-breakdown?year=2025", headers=auth_headers).json()["data"]
    # 12.5 and 87.5 both go up
    assert [row["percentage"] for row in breakdown] == [88, 13]


def test_share_percent():
    assert report_service.share_percent(Decimal("12.5"), Decimal("100")) == 13
    assert report_service.share_percent(Decimal("2.5"), Decimal("100")) == 3
    assert report_service.share_percent(Decimal("1"), Decimal("0")) == 0


def test_overview_for_new_user(client, auth_headers):
    overview = client.get("/api/reports/overview", headers=auth_headers).json()["data"]
    assert overview["revenue_this_month"] == 0.0
    assert overview["available_credit"] == overview["credit_limit"] == 500000.0
    assert overview["recent_transactions"] == []


def test_overview_this_month(client, auth_headers):
    today = date.today().isoformat()
    paid_invoice(client, auth_headers, today, 12000)
    approved_expense(client, auth_headers, today, "utilities", 2000)
    client.post("/api/wallet/topup", headers=auth_headers, json={
        "amount": 500, "method": "mpesa", "mobile_number": "+254712345678",
    })

    overview = client.get("/api/reports/overview", headers=auth_headers).json()["data"]
    assert overview["revenue_this_month"] == 12000.0
    assert overview["expenses_this_month"] == 2000.0
    assert overview["wallet_balance"] == 500.0
    assert len(overview["recent_transactions"]) == 1


def test_year_out_of_range(client, auth_headers):
    assert client.get("/api/reports/summary?year=1999", headers=auth_headers).status_code == 400
