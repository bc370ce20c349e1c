import pytest

from rewards.accounts.models import Account, Eligibility, ReferralEntry
from rewards.accounts.service import account_service
from rewards.admin.service import admin_service
from rewards.errors import NotFoundError, ValidationError
from rewards.referral.service import build_referral_code, referral_service
from rewards.storage.db import db

from conftest import create_account


def _reload(account_id: int) -> Account:
    with db.session() as session:
        return session.get(Account, account_id)


def test_referral_code_format():
    assert build_referral_code("Ann Smith", 7) == "ann-smith/referral/7"


def test_signup_assigns_code_from_id():
    account = create_account(name="Ann Smith")

    assert account.referral_code == f"ann-smith/referral/{account.id}"


def test_signup_with_code_appends_zero_point_entry():
    referrer = create_account(name="Ref Errer", email="ref@example.com")

    referred = create_account(name="New User", email="new@example.com", referral_code=referrer.referral_code)

    stored = _reload(referrer.id)
    assert referred.referred_by_id == referrer.id
    assert len(stored.referral_entries) == 1
    entry = stored.referral_entries[0]
    assert entry.points == 0
    assert entry.referred_id == referred.id
    assert entry.snapshot["email"] == "new@example.com"


def test_signup_rejects_malformed_code():
    with pytest.raises(ValidationError, match="Invalid referral code format"):
        create_account(referral_code="just-a-code")


def test_signup_rejects_unknown_code():
    with pytest.raises(ValidationError, match="^Invalid referral code$"):
        create_account(referral_code="someone/referral/999")


def test_three_referrals_raise_level_to_two():
    referrer = create_account(name="Ref Errer", email="ref@example.com")

    for i in range(3):
        create_account(name=f"Friend {i}", email=f"f{i}@example.com", referral_code=referrer.referral_code)

    assert _reload(referrer.id).level == 2


def test_level_two_referrer_credited_1400_on_verification():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    friends = [
        create_account(name=f"Friend {i}", email=f"f{i}@example.com", referral_code=referrer.referral_code)
        for i in range(3)
    ]
    assert _reload(referrer.id).level == 2

    account, credited = admin_service.update_eligibility(friends[0].id, Eligibility.VERIFIED)

    assert credited == 1400
    assert account.eligibility == Eligibility.VERIFIED
    stored = _reload(referrer.id)
    assert stored.total_points_earned == 1400
    assert len(stored.referral_entries) == 4
    assert stored.referral_entries[-1].points == 1400
    # 4 entries keep the referral-count level at 2; 1400 points alone give 1
    assert stored.level == 2


def test_credit_crossing_point_threshold_raises_level():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    with db.session() as session:
        stored = session.get(Account, referrer.id)
        stored.level = 2
        stored.total_points_earned = 19000
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)

    _, credited = admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)

    assert credited == 1400
    stored = _reload(referrer.id)
    assert stored.total_points_earned == 20400
    # Points give level 5, two entries only give level 1
    assert stored.level == 5


def test_level_never_drops_below_current_on_credit():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    with db.session() as session:
        stored = session.get(Account, referrer.id)
        stored.level = 4
        stored.total_points_earned = 4000
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)

    _, credited = admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)

    assert credited == 2500
    stored = _reload(referrer.id)
    assert stored.total_points_earned == 6500
    assert stored.level == 4


def test_no_credit_when_referrer_not_verified():
    referrer = create_account(name="Ref Errer", email="ref@example.com")
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)

    _, credited = admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)

    assert credited == 0
    assert _reload(referrer.id).total_points_earned == 0


def test_no_second_credit_when_already_verified():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)

    admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)
    _, credited = admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)

    assert credited == 0
    assert _reload(referrer.id).total_points_earned == 1000


def test_lookup_reads_referred_accounts_live():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)
    # Credit adds a second entry for the same friend
    admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)
    with db.session() as session:
        session.get(Account, friend.id).total_points_earned = 777

    users = referral_service.get_referred_user_data(referrer.referral_code)

    assert len(users) == 1
    assert users[0]["email"] == "friend@example.com"
    assert users[0]["total_points_earned"] == 777


def test_lookup_errors():
    loner = create_account()

    with pytest.raises(ValidationError, match="Referral code is required"):
        referral_service.get_referred_user_data(None)
    with pytest.raises(NotFoundError, match="Referred user not found"):
        referral_service.get_referred_user_data("ghost/referral/404")
    with pytest.raises(NotFoundError, match="No referred users found"):
        referral_service.get_referred_user_data(loner.referral_code)


def test_convert_referred_points():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)
    admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)

    result = referral_service.convert_referred_points(referrer.id)

    assert result == {"total_referred_points": 1000, "converted_balance": 250}
    stored = _reload(referrer.id)
    assert all(entry.points == 0 for entry in stored.referral_entries)
    # Lifetime points are not touched by conversion
    assert stored.total_points_earned == 1000


def test_convert_with_empty_ledger_rejected():
    account = create_account()

    with pytest.raises(ValidationError, match="No referred points found for the user"):
        referral_service.convert_referred_points(account.id)


def test_deleting_referred_account_tombstones_entries():
    referrer = create_account(name="Ref Errer", email="ref@example.com", eligibility=Eligibility.VERIFIED)
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)
    admin_service.update_eligibility(friend.id, Eligibility.VERIFIED)

    account_service.delete_account(friend.id)

    stored = _reload(referrer.id)
    assert len(stored.referral_entries) == 2
    assert all(entry.referred_id is None for entry in stored.referral_entries)
    assert stored.referral_entries[-1].points == 1000
    assert stored.referral_entries[0].snapshot["email"] == "friend@example.com"


def test_deleting_referrer_detaches_referred_accounts():
    referrer = create_account(name="Ref Errer", email="ref@example.com")
    friend = create_account(name="Friend", email="friend@example.com", referral_code=referrer.referral_code)

    account_service.delete_account(referrer.id)

    assert _reload(friend.id).referred_by_id is None
    with db.session() as session:
        assert session.query(ReferralEntry).count() == 0
