from datetime import datetime, timedelta

from rewards.accounts.models import Account
from rewards.auth.local import auth_service
from rewards.settings import settings

from conftest import create_account


def test_password_hash_roundtrip():
    hashed = auth_service.hash_password("correct-horse")

    assert hashed != "correct-horse"
    assert auth_service.verify_password("correct-horse", hashed)
    assert not auth_service.verify_password("wrong-horse", hashed)


def test_password_truncated_to_bcrypt_limit():
    long_password = "x" * 100
    hashed = auth_service.hash_password(long_password)

    assert auth_service.verify_password("x" * 72, hashed)


def test_issue_otp_is_four_digits_with_expiry():
    account = Account(name="Ann", email="ann@example.com")
    now = datetime(2026, 1, 1, 12, 0, 0)

    otp = auth_service.issue_otp(account, now=now)

    assert len(otp) == 4 and otp.isdigit()
    assert 1000 <= int(otp) <= 9999
    assert account.otp == otp
    assert account.otp_expires_at == now + timedelta(minutes=settings.otp_expire_minutes)


def test_issue_otp_overwrites_previous_code():
    account = Account(name="Ann", email="ann@example.com")
    auth_service.issue_otp(account)
    account.otp = "0000"

    second = auth_service.issue_otp(account)

    assert account.otp == second


def test_verify_otp_checks_code_and_expiry():
    account = Account(name="Ann", email="ann@example.com")
    now = datetime(2026, 1, 1, 12, 0, 0)
    otp = auth_service.issue_otp(account, now=now)

    assert auth_service.verify_otp(account, otp, now=now + timedelta(minutes=1))
    assert not auth_service.verify_otp(account, "not-it", now=now)
    assert not auth_service.verify_otp(account, otp, now=now + timedelta(minutes=6))
    # Verification does not consume the code
    assert account.otp == otp


def test_verify_otp_without_stored_code():
    account = Account(name="Ann", email="ann@example.com")

    assert not auth_service.verify_otp(account, "1234")


def test_clear_otp():
    account = Account(name="Ann", email="ann@example.com")
    auth_service.issue_otp(account)

    auth_service.clear_otp(account)

    assert account.otp is None
    assert account.otp_expires_at is None


def test_session_token_resolves_account():
    account = create_account()
    token = auth_service.create_session_token(account)

    payload = auth_service.verify_token(token)
    resolved = auth_service.get_account_from_token(token)

    assert payload["sub"] == str(account.id)
    assert resolved is not None and resolved.id == account.id


def test_expired_or_garbage_token_rejected():
    account = create_account()
    expired = auth_service.create_session_token(account, expires_delta=timedelta(seconds=-10))

    assert auth_service.get_account_from_token(expired) is None
    assert auth_service.get_account_from_token("not-a-jwt") is None
