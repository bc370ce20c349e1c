from datetime import date

import pytest

from rewards.accounts.models import Account
from rewards.errors import ValidationError
from rewards.points.service import DAILY_CLAIM_LIMIT, points_service
from rewards.storage.db import db

from conftest import create_account

DAY_ONE = date(2026, 3, 1)
DAY_TWO = date(2026, 3, 2)


def _reload(account_id: int) -> Account:
    with db.session() as session:
        return session.get(Account, account_id)


def test_claim_adds_twenty_to_both_pools():
    account = create_account()

    result = points_service.daily_claim(account.id, on=DAY_ONE)

    assert result["daily_claim_count"] == 1
    assert result["daily_points"] == 20
    assert result["total_points_earned"] == 20


def test_claim_limit_then_reset_next_day():
    account = create_account()

    for _ in range(DAILY_CLAIM_LIMIT):
        points_service.daily_claim(account.id, on=DAY_ONE)

    with pytest.raises(ValidationError, match="Daily claim limit reached"):
        points_service.daily_claim(account.id, on=DAY_ONE)

    stored = _reload(account.id)
    assert stored.daily_claim_count == 5
    assert stored.daily_points == 100

    result = points_service.daily_claim(account.id, on=DAY_TWO)
    assert result["daily_claim_count"] == 1
    assert result["daily_points"] == 120
    assert _reload(account.id).last_claim_date == DAY_TWO


def test_new_day_resets_counter_before_limit_check():
    account = create_account()
    with db.session() as session:
        stored = session.get(Account, account.id)
        stored.daily_claim_count = 5
        stored.last_claim_date = DAY_ONE

    result = points_service.daily_claim(account.id, on=DAY_TWO)

    assert result["daily_claim_count"] == 1


def test_convert_moves_daily_pool_into_balance():
    account = create_account()
    for _ in range(5):
        points_service.daily_claim(account.id, on=DAY_ONE)

    result = points_service.convert_points(account.id)

    assert result == {"daily_points": 0, "converted_balance": 25}
    stored = _reload(account.id)
    assert stored.total_points_earned == 100


def test_convert_zero_pool_succeeds():
    account = create_account()

    result = points_service.convert_points(account.id)

    assert result == {"daily_points": 0, "converted_balance": 0}


def test_convert_floors_remainder():
    account = create_account()
    with db.session() as session:
        session.get(Account, account.id).daily_points = 7

    result = points_service.convert_points(account.id)

    assert result["converted_balance"] == 1
    assert result["daily_points"] == 0
