from pathlib import Path

from rewards.accounts.models import Account
from rewards.storage.db import db

from conftest import create_account, login


def _give_balance(account_id: int, amount: int) -> None:
    with db.session() as session:
        session.get(Account, account_id).converted_balance = amount


def test_feedback_replaces_previous(client):
    create_account(name="Ann Smith", email="ann@example.com")
    login(client, "ann@example.com")

    first = client.post("/api/v1/account/feedback", json={"content": "Nice app"})
    second = client.post("/api/v1/account/feedback", json={"content": "Even nicer"})

    assert first.status_code == 201
    assert second.status_code == 201
    feedback = second.json()["feedback"]
    assert feedback["content"] == "Even nicer"
    assert feedback["author_name"] == "Ann Smith"
    assert feedback["author_email"] == "ann@example.com"


def test_feedback_requires_content(client):
    create_account(email="ann@example.com")
    login(client, "ann@example.com")

    response = client.post("/api/v1/account/feedback", json={"content": "  "})

    assert response.status_code == 400
    assert response.json()["message"] == "Feedback content is required"


def test_payment_image_upload(client, outbox):
    create_account(email="ann@example.com")
    login(client, "ann@example.com")

    response = client.post(
        "/api/v1/account/payment-image",
        files={"file": ("receipt.png", b"\x89PNG fake", "image/png")},
    )

    assert response.status_code == 200
    path = response.json()["user"]["payment_image"]
    assert path.endswith("receipt.png")
    assert Path(path).read_bytes() == b"\x89PNG fake"
    assert {mail["to"] for mail in outbox} == {"ann@example.com", "ops@example.com"}


def test_payment_image_not_recorded_when_mail_fails(client, failing_mail):
    account = create_account(email="ann@example.com")
    login(client, "ann@example.com")

    response = client.post(
        "/api/v1/account/payment-image",
        files={"file": ("proof.png", b"\x89PNG fake", "image/png")},
    )

    assert response.status_code == 500
    assert response.json()["success"] is False
    with db.session() as session:
        assert session.get(Account, account.id).payment_image is None


def test_payment_image_requires_file(client):
    create_account(email="ann@example.com")
    login(client, "ann@example.com")

    response = client.post("/api/v1/account/payment-image", data={"note": "no file"})

    assert response.status_code == 400
    assert response.json()["message"] == "File is required"


def test_withdrawal_request_checks_balance(client):
    account = create_account(email="ann@example.com")
    _give_balance(account.id, 50)
    login(client, "ann@example.com")

    too_much = client.post(
        "/api/v1/withdrawals",
        json={"amount": 80, "method": "bank", "account_number": "IT60X0542811101000000123456"},
    )
    assert too_much.status_code == 400
    assert too_much.json()["message"] == "Insufficient balance"

    missing = client.post("/api/v1/withdrawals", json={"amount": 10})
    assert missing.status_code == 400

    ok = client.post(
        "/api/v1/withdrawals",
        json={"amount": 40, "method": "bank", "account_number": "IT60X0542811101000000123456"},
    )
    assert ok.status_code == 201
    assert ok.json()["withdrawal"]["status"] == "pending"

    listed = client.get("/api/v1/withdrawals").json()["withdrawals"]
    assert [w["amount"] for w in listed] == [40]

    # Balance is only deducted on approval
    assert client.get("/api/v1/auth/me").json()["user"]["converted_balance"] == 50
