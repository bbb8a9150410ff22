import json
from datetime import date

import pytest

from pesaflip.ai import invoice_ai
from pesaflip.ai.invoice_ai import AISuggestionError
from pesaflip.schemas.ai import PreviousInvoice, SuggestedItem
from tests.conftest import FakeGroq


@pytest.fixture
def fake_groq(monkeypatch):
    def install(*responses):
        fake = FakeGroq(*responses)
        monkeypatch.setattr(invoice_ai, "get_groq_client", lambda: fake)
        return fake
    return install


def test_title_uses_model_output(fake_groq):
    fake_groq(json.dumps({"title": "March Retainer", "description": "Monthly design retainer"}))
    result = invoice_ai.suggest_invoice_title("Wanjiku Designs", "Acme Co", ["Feb Retainer"])
    assert result == {"title": "March Retainer", "description": "Monthly design retainer"}


def test_title_falls_back_on_bad_output(fake_groq):
    fake_groq("sorry, I can't help with that")
    result = invoice_ai.suggest_invoice_title("Wanjiku Designs", "Acme Co")
    assert result == {
        "title": "Invoice for Acme Co",
        "description": "Services provided by Wanjiku Designs",
    }


def test_title_falls_back_without_api_key():
    # conftest leaves GROQ_API_KEY empty
    result = invoice_ai.suggest_invoice_title("Wanjiku Designs", "Acme Co")
    assert result["title"] == "Invoice for Acme Co"


def test_due_date_defaults(fake_groq):
    fake = fake_groq("30")
    assert invoice_ai.predict_due_date([]) == 14
    assert fake.calls == []

    assert invoice_ai.predict_due_date([30, 30, 45]) == 30

    fake_groq("about two weeks")
    assert invoice_ai.predict_due_date([7]) == 14


def test_items_parsed_and_cleaned(fake_groq):
    fake_groq("```json\n" + json.dumps({"items": [
        {"description": "Logo design", "quantity": 1, "amount": 15000},
        {"description": "", "quantity": 1, "amount": 5},
        "garbage",
    ]}) + "\n```")
    items = invoice_ai.suggest_invoice_items([SuggestedItem(description="Logo", quantity=1, amount=12000)], "Lo")
    assert [i.description for i in items] == ["Logo design"]


def test_items_empty_on_failure(fake_groq):
    fake_groq(None)
    assert invoice_ai.suggest_invoice_items([]) == []


def test_payment_terms(fake_groq):
    assert invoice_ai.suggest_payment_terms([]) == "Net 14"
    fake_groq(" Net 30 ")
    assert invoice_ai.suggest_payment_terms(["Net 30"]) == "Net 30"


def test_generate_suggestions_uses_last_five_for_client(fake_groq):
    fake = fake_groq(json.dumps({
        "title": "Consulting",
        "description": "Monthly consulting",
        "suggested_items": [{"description": "Consulting hours", "quantity": 10, "amount": 30000}],
        "suggested_payment_terms": "Net 30",
    }))
    history = [
        PreviousInvoice(title=f"Inv {n}", due_date="2025-01-01", client_id="c1" if n % 2 else "c2")
        for n in range(14)
    ]
    result = invoice_ai.generate_invoice_suggestions(history, client_id="c1", today=date(2025, 6, 1))

    assert result.title == "Consulting"
    assert result.suggested_due_date == "2025-06-15"
    assert result.suggested_items[0].description == "Consulting hours"
    prompt = fake.calls[0]["messages"][1]["content"]
    assert "Inv 13" in prompt and "Inv 5" in prompt
    assert "Inv 3" not in prompt and "Inv 2" not in prompt


def test_generate_suggestions_raises_when_completion_fails(fake_groq):
    fake_groq(None)
    with pytest.raises(AISuggestionError):
        invoice_ai.generate_invoice_suggestions([])


def test_ai_routes_require_auth(client):
    assert client.post("/api/invoices/ai/title", json={}).status_code == 401


def test_title_route_requires_names(client, auth_headers):
    response = client.post("/api/invoices/ai/title", headers=auth_headers, json={"business_name": "X"})
    assert response.status_code == 400


def test_suggestions_route_returns_503_on_failure(client, auth_headers):
    response = client.post("/api/invoices/ai/suggestions", headers=auth_headers, json={"previous_invoices": []})
    assert response.status_code == 503
    assert response.json()["success"] is False


def test_simple_routes_fall_back(client, auth_headers):
    due = client.post("/api/invoices/ai/due-date", headers=auth_headers, json={"previous_due_dates": [30]})
    assert due.json()["data"] == {"days": 14}
    terms = client.post("/api/invoices/ai/payment-terms", headers=auth_headers, json={"previous_terms": []})
    assert terms.json()["data"] == {"payment_terms": "Net 14"}
    items = client.post("/api/invoices/ai/items", headers=auth_headers, json={})
    assert items.json()["data"] == {"items": []}
