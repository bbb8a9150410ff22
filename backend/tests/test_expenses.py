import pytest

from tests.conftest import bearer, register


def add_expense(client, headers, **overrides):
    payload = {
        "date": "2025-03-05",
        "category": "rent",
        "amount": 25000,
        "description": "March office rent",
    }
    payload.update(overrides)
    response = client.post("/api/expenses", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_categories(client, auth_headers):
    categories = client.get("/api/expenses/categories", headers=auth_headers).json()["data"]
    assert {"id": "office-supplies", "name": "Office Supplies"} in categories
    assert len(categories) == 8


def test_create_expense_starts_pending(client, auth_headers):
    expense = add_expense(client, auth_headers)
    assert expense["status"] == "pending"
    assert expense["amount"] == 25000.0
    assert expense["category"] == "rent"


@pytest.mark.parametrize("overrides, message", [
    ({"category": "snacks"}, "Category must be one of"),
    ({"amount": 0}, "Amount must be a positive number"),
    ({"amount": -10}, "Amount must be a positive number"),
    ({"amount": "1e30"}, "Amount must be a positive number"),
    ({"description": "   "}, "Description is required"),
])
def test_create_expense_validation(client, auth_headers, overrides, message):
    payload = {"category": "rent", "amount": 100, "description": "Rent", **overrides}
    response = client.post("/api/expenses", headers=auth_headers, json=payload)
    assert response.status_code == 400
    assert response.json()["error"]["message"].startswith(message)


def test_list_filters_and_order(client, auth_headers):
    add_expense(client, auth_headers, date="2025-01-10", category="travel", amount=3000, description="Taxi")
    add_expense(client, auth_headers, date="2025-02-10", category="software", amount=12000, description="Design tools")
    add_expense(client, auth_headers, date="2025-03-10", category="travel", amount=8000, description="Flight")

    everything = client.get("/api/expenses", headers=auth_headers).json()["data"]
    assert [e["description"] for e in everything] == ["Flight", "Design tools", "Taxi"]

    travel = client.get("/api/expenses?category=travel", headers=auth_headers).json()["data"]
    assert len(travel) == 2

    ranged = client.get(
        "/api/expenses?date_from=2025-02-01&date_to=2025-03-31&min_amount=9000",
        headers=auth_headers,
    ).json()["data"]
    assert [e["description"] for e in ranged] == ["Design tools"]

    bad_range = client.get("/api/expenses?date_from=2025-03-01&date_to=2025-01-01", headers=auth_headers)
    assert bad_range.status_code == 400


def test_review_expense_once(client, auth_headers):
    expense = add_expense(client, auth_headers)
    url = f"/api/expenses/{expense['id']}/status"

    assert client.patch(url, headers=auth_headers, json={"status": "paid"}).status_code == 400

    approved = client.patch(url, headers=auth_headers, json={"status": "approved"})
    assert approved.json()["data"]["status"] == "approved"

    again = client.patch(url, headers=auth_headers, json={"status": "rejected"})
    assert again.status_code == 400
    assert again.json()["error"]["message"] == "Expense has already been approved"

    approved_only = client.get("/api/expenses?status=approved", headers=auth_headers).json()["data"]
    assert len(approved_only) == 1


def test_expenses_are_private(client, auth_headers):
    expense = add_expense(client, auth_headers)
    _, token = register(client, phone_number="+254733000000", name="Otieno")
    other = bearer(token)

    assert client.get("/api/expenses", headers=other).json()["data"] == []
    assert client.delete(f"/api/expenses/{expense['id']}", headers=other).status_code == 404


def test_delete_expense(client, auth_headers):
    expense = add_expense(client, auth_headers)
    assert client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers).status_code == 200
    assert client.get("/api/expenses", headers=auth_headers).json()["data"] == []


def test_expenses_require_auth(client):
    assert client.get("/api/expenses").status_code == 401
