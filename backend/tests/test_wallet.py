from decimal import Decimal

import pytest

from pesaflip.core.exceptions import ApiError
from pesaflip.models.wallet import Wallet, WalletTransaction
from pesaflip.services import wallet_service


def topup(client, headers, amount=1000, method="mpesa", **extra):
    payload = {"amount": amount, "method": method, **extra}
    if method == "mpesa":
        payload.setdefault("mobile_number", "+254712345678")
    return client.post("/api/wallet/topup", headers=headers, json=payload)


def test_new_user_has_zero_balance(client, auth_headers):
    response = client.get("/api/wallet/balance", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"balance": 0.0, "currency": "KES"}


def test_topup_increases_balance_and_records_transaction(client, auth_headers):
    response = topup(client, auth_headers, 1500.50)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["new_balance"] == 1500.50
    assert data["reference"].startswith("TOP")
    assert data["transaction_id"]

    balance = client.get("/api/wallet/balance", headers=auth_headers).json()["data"]["balance"]
    assert balance == 1500.50

    history = client.get("/api/wallet/transactions", headers=auth_headers).json()["data"]
    assert history["pagination"]["total"] == 1
    txn = history["transactions"][0]
    assert txn["type"] == "topup"
    assert txn["status"] == "completed"
    assert txn["method"] == "mpesa"
    assert txn["recipient_info"] == "+254712345678"


def test_topup_keeps_client_reference(client, auth_headers):
    response = topup(client, auth_headers, 100, reference="MPESA-QX12")
    assert response.json()["data"]["reference"] == "MPESA-QX12"


@pytest.mark.parametrize("payload, message", [
    ({"amount": 0, "method": "mpesa", "mobile_number": "+254712345678"}, "Amount must be a positive number"),
    ({"amount": -5, "method": "mpesa", "mobile_number": "+254712345678"}, "Amount must be a positive number"),
    ({"amount": "1e30", "method": "bank"}, "Amount must be a positive number"),
    ({"amount": 100, "method": "paypal"}, "Payment method must be one of: mpesa, card, bank"),
    ({"amount": 100, "method": "mpesa"}, "Mobile number is required for M-PESA payments"),
    ({"amount": 100, "method": "card"}, "Card number is required for card payments"),
])
def test_topup_validation(client, auth_headers, payload, message):
    response = client.post("/api/wallet/topup", headers=auth_headers, json=payload)
    assert response.status_code == 400
    assert response.json()["error"]["message"] == message


def test_card_topup_stores_only_last_four_digits(client, auth_headers):
    topup(client, auth_headers, 200, method="card", card_number="4111 1111 1111 1234")
    txn = client.get("/api/wallet/transactions", headers=auth_headers).json()["data"]["transactions"][0]
    assert txn["recipient_info"] == "**** **** **** 1234"
    assert "4111" not in txn["recipient_info"]


def test_wallet_movements_are_audited(client, auth_headers, caplog):
    caplog.set_level("INFO", logger="audit")
    topup(client, auth_headers, 200, method="card", card_number="4111 1111 1111 1234")

    events = [r.getMessage() for r in caplog.records if r.name == "audit"]
    assert any('"event_type": "wallet.topup"' in e for e in events)
    assert not any("4111" in e for e in events)


def test_withdraw_reduces_balance(client, auth_headers):
    topup(client, auth_headers, 1000)
    response = client.post("/api/wallet/withdraw", headers=auth_headers, json={
        "amount": 400, "destination": "bank", "account_number": "0123456789",
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["new_balance"] == 600.0
    assert data["reference"].startswith("WD")


def test_withdraw_more_than_balance_is_rejected_and_nothing_changes(client, auth_headers):
    topup(client, auth_headers, 300)
    response = client.post("/api/wallet/withdraw", headers=auth_headers, json={
        "amount": 500, "destination": "mpesa", "mobile_number": "+254712345678",
    })
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["message"] == "Withdrawal amount exceeds available balance"
    assert error["details"] == {"requested_amount": 500.0, "available_balance": 300.0}

    assert client.get("/api/wallet/balance", headers=auth_headers).json()["data"]["balance"] == 300.0
    history = client.get("/api/wallet/transactions", headers=auth_headers).json()["data"]
    assert history["pagination"]["total"] == 1


def test_withdraw_requires_destination_details(client, auth_headers):
    topup(client, auth_headers, 300)
    mpesa = client.post("/api/wallet/withdraw", headers=auth_headers, json={"amount": 10, "destination": "mpesa"})
    bank = client.post("/api/wallet/withdraw", headers=auth_headers, json={"amount": 10, "destination": "bank"})
    card = client.post("/api/wallet/withdraw", headers=auth_headers, json={"amount": 10, "destination": "card"})
    assert mpesa.json()["error"]["message"] == "Mobile number is required for M-PESA withdrawals"
    assert bank.json()["error"]["message"] == "Account number is required for bank withdrawals"
    assert card.json()["error"]["message"] == "Destination must be one of: mpesa, bank"

    huge = client.post("/api/wallet/withdraw", headers=auth_headers, json={
        "amount": "1e30", "destination": "bank", "account_number": "0123456789",
    })
    assert huge.status_code == 400
    assert huge.json()["error"]["message"] == "Amount must be a positive number"


def test_withdraw_entire_balance_leaves_zero(client, auth_headers):
    topup(client, auth_headers, 250)
    response = client.post("/api/wallet/withdraw", headers=auth_headers, json={
        "amount": 250, "destination": "mpesa", "mobile_number": "+254712345678",
    })
    assert response.json()["data"]["new_balance"] == 0.0


def test_transactions_pagination_and_filters(client, auth_headers):
    for amount in (100, 200, 300):
        topup(client, auth_headers, amount)
    client.post("/api/wallet/withdraw", headers=auth_headers, json={
        "amount": 50, "destination": "mpesa", "mobile_number": "+254712345678",
    })

    page = client.get("/api/wallet/transactions?limit=2&offset=0", headers=auth_headers).json()["data"]
    assert len(page["transactions"]) == 2
    assert page["pagination"] == {"limit": 2, "offset": 0, "total": 4}

    topups = client.get("/api/wallet/transactions?type=topup", headers=auth_headers).json()["data"]
    assert topups["pagination"]["total"] == 3
    assert all(t["type"] == "topup" for t in topups["transactions"])

    # limit is capped, junk falls back to defaults
    capped = client.get("/api/wallet/transactions?limit=500", headers=auth_headers).json()["data"]
    assert capped["pagination"]["limit"] == 50
    junk = client.get("/api/wallet/transactions?limit=abc&offset=-3", headers=auth_headers).json()["data"]
    assert junk["pagination"]["limit"] == 10
    assert junk["pagination"]["offset"] == 0


def test_wallets_are_per_user(client, auth_headers):
    from tests.conftest import bearer, register
    topup(client, auth_headers, 999)
    _, other_token = register(client, phone_number="+254733000000", name="Otieno")
    other = client.get("/api/wallet/balance", headers=bearer(other_token)).json()["data"]
    assert other["balance"] == 0.0


def test_wallet_requires_auth(client):
    assert client.get("/api/wallet/balance").status_code == 401


def test_get_or_create_wallet_is_idempotent(db, user_and_headers):
    user, _ = user_and_headers
    first = wallet_service.get_or_create_wallet(db, user["id"])
    second = wallet_service.get_or_create_wallet(db, user["id"])
    assert first.id == second.id
    assert db.query(Wallet).filter(Wallet.user_id == user["id"]).count() == 1


def test_failed_commit_rolls_back_balance_and_record(db, user_and_headers, monkeypatch):
    user, _ = user_and_headers
    wallet_service.top_up_wallet(db, user["id"], "100.00", "bank")

    def broken_commit():
        from sqlalchemy.exc import OperationalError
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(ApiError) as exc:
        wallet_service.top_up_wallet(db, user["id"], "50.00", "bank")
    assert exc.value.status_code == 500
    monkeypatch.undo()

    wallet = wallet_service.get_or_create_wallet(db, user["id"])
    db.refresh(wallet)
    assert Decimal(wallet.balance) == Decimal("100.00")
    assert db.query(WalletTransaction).filter(WalletTransaction.wallet_id == wallet.id).count() == 1


def test_balance_constraint_rejects_overdraft(db, user_and_headers):
    user, _ = user_and_headers
    wallet_service.top_up_wallet(db, user["id"], "100.00", "bank")
    wallet = wallet_service.get_or_create_wallet(db, user["id"])

    # Skip the service-level balance check and let chk_wallet_balance catch it
    with pytest.raises(ApiError) as exc:
        wallet_service._apply_movement(
            db, user["id"], wallet, "withdraw", Decimal("150.00"), Decimal("-50.00"),
            "bank", "WD1234567", None,
        )
    assert exc.value.status_code == 400
    assert exc.value.message == "Insufficient funds"

    db.refresh(wallet)
    assert Decimal(wallet.balance) == Decimal("100.00")
    assert db.query(WalletTransaction).filter(WalletTransaction.wallet_id == wallet.id).count() == 1


def test_amounts_are_rounded_to_cents(db, user_and_headers):
    user, _ = user_and_headers
    result = wallet_service.top_up_wallet(db, user["id"], "10.005", "bank")
    assert result["new_balance"] == Decimal("10.01")


def test_mask_card_number():
    assert wallet_service.mask_card_number("4111-1111-1111-9876") == "**** **** **** 9876"
    assert wallet_service.mask_card_number("12") == "****"
