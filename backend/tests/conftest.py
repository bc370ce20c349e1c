"""Shared fixtures: temporary SQLite database, mail outbox, API client."""

import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="rewards-tests-"))

# Must be set before any rewards module reads settings
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["COOKIE_SECURE"] = "false"
os.environ["COOKIE_SAMESITE"] = "lax"
os.environ["ADMIN_EMAIL"] = "ops@example.com"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from rewards.accounts.models import Account, AccountStatus, Eligibility, Role  # noqa: E402
from rewards.accounts.service import account_service  # noqa: E402
from rewards.email.service import email_service  # noqa: E402
from rewards.errors import MailDeliveryError  # noqa: E402
from rewards.storage.db import db  # noqa: E402

PASSWORD = "correct-horse"


@pytest.fixture(autouse=True)
def fresh_database():
    """Recreate all tables for every test."""
    db.drop_tables()
    db.create_tables()
    yield


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing mail instead of calling SendGrid."""
    sent: list[dict] = []

    async def fake_send(to_email: str, subject: str, html_content: str) -> bool:
        sent.append({"to": to_email, "subject": subject, "html": html_content})
        return True

    monkeypatch.setattr(email_service, "_send_email", fake_send)
    return sent


@pytest.fixture
def failing_mail(monkeypatch):
    """Make every mail send fail."""
    async def fail_send(to_email: str, subject: str, html_content: str) -> bool:
        raise MailDeliveryError("Failed to send mail")

    monkeypatch.setattr(email_service, "_send_email", fail_send)


@pytest.fixture
def client():
    """API test client."""
    from rewards.api.main import app

    with TestClient(app) as test_client:
        yield test_client


def create_account(
    name: str = "Ann Smith",
    email: str = "ann@example.com",
    password: str = PASSWORD,
    referral_code: str | None = None,
    verified: bool = True,
    eligibility: Eligibility | None = None,
    role: Role | None = None,
) -> Account:
    """Create an account through the service and optionally adjust its state."""
    result = account_service.signup(
        name=name,
        email=email,
        phone=5550100,
        password=password,
        referral_code=referral_code,
    )
    if verified or eligibility is not None or role is not None:
        with db.session() as session:
            account = session.get(Account, result.account.id)
            if verified:
                account.status = AccountStatus.VERIFIED
                account.otp = None
                account.otp_expires_at = None
            if eligibility is not None:
                account.eligibility = eligibility
            if role is not None:
                account.role = role
    return account_service.get_account(result.account.id)


def login(client: TestClient, email: str, password: str = PASSWORD):
    """Log in and keep the session cookie on the client."""
    client.cookies.clear()
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response
