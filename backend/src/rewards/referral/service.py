"""Referral ledger: codes, attribution, lookups and conversion."""

from typing import Any

from slugify import slugify
from sqlalchemy import select
from sqlalchemy.orm import Session

from rewards.accounts.models import Account, Eligibility, ReferralEntry, ReferredUser
from rewards.errors import NotFoundError, ValidationError
from rewards.logging_config import get_logger
from rewards.referral import levels
from rewards.storage.db import db

logger = get_logger(__name__)

REFERRAL_CODE_MARKER = "referral"
MIN_CODE_SEGMENTS = 3


def build_referral_code(name: str, account_id: int) -> str:
    """Format ``<slugified-name>/referral/<id>``."""
    slug = slugify(name) or "user"
    return f"{slug}/{REFERRAL_CODE_MARKER}/{account_id}"


def assign_referral_code(account: Account) -> None:
    """Give a flushed account its referral code. Never changes an existing one."""
    if account.referral_code:
        return
    if account.id is None:
        raise ValueError("Account must be flushed before assigning a referral code")
    account.referral_code = build_referral_code(account.name, account.id)


def lock_account(session: Session, account_id: int) -> Account | None:
    """Load an account with a row lock for a read-modify-write."""
    return session.scalar(
        select(Account).where(Account.id == account_id).with_for_update()
    )


class ReferralService:
    """Service for the referral points ledger."""

    def __init__(self):
        """Initialize referral service."""
        self.logger = get_logger(__name__)

    def resolve_code(self, session: Session, code: str) -> Account:
        """Find the account owning a referral code.

        Raises:
            ValidationError: If the code is malformed or unknown
        """
        code = code.strip()
        if len(code.split("/")) < MIN_CODE_SEGMENTS:
            raise ValidationError("Invalid referral code format")

        referrer = session.scalar(
            select(Account).where(Account.referral_code == code).with_for_update()
        )
        if not referrer:
            raise ValidationError("Invalid referral code")
        return referrer

    def append_entry(
        self,
        referrer: Account,
        referred: Account,
        points: int = 0,
    ) -> ReferralEntry:
        """Append a ledger entry with a snapshot of the referred account.

        Recomputes the referrer's level from the new entry count.
        """
        entry = ReferralEntry(
            referred_id=referred.id,
            points=points,
            snapshot=dict(referred.public_fields),
        )
        referrer.referral_entries.append(entry)
        referrer.level = levels.recompute_level(
            referrer.level,
            referrer.total_points_earned,
            len(referrer.referral_entries),
        )
        return entry

    def credit_referrer(self, session: Session, referred: Account) -> int:
        """Award points to the referrer of a newly eligible account.

        Only credits when the referrer's own eligibility is verified.

        Args:
            session: Open session (same unit of work as the eligibility change)
            referred: Account whose eligibility just became verified

        Returns:
            Points credited (0 when nothing was credited)
        """
        if not referred.referred_by_id:
            return 0

        referrer = lock_account(session, referred.referred_by_id)
        if not referrer or referrer.eligibility != Eligibility.VERIFIED:
            self.logger.info(
                "referral_credit_skipped",
                referred_id=referred.id,
                referrer_id=referred.referred_by_id,
            )
            return 0

        award = levels.referral_award(referrer.level)
        referrer.total_points_earned += award
        self.append_entry(referrer, referred, points=award)

        self.logger.info(
            "referral_credited",
            referrer_id=referrer.id,
            referred_id=referred.id,
            points=award,
            level=referrer.level,
        )
        return award

    def get_referred_user_data(self, referral_code: str | None) -> list[dict[str, Any]]:
        """Current public fields of every account referred by ``referral_code``.

        Reads each referred account live; snapshots are not used.

        Raises:
            ValidationError: If no code was given
            NotFoundError: If the code is unknown or nobody was referred
        """
        if not referral_code:
            raise ValidationError("Referral code is required")

        with db.session() as session:
            referrer = session.scalar(
                select(Account).where(Account.referral_code == referral_code.strip())
            )
            if not referrer:
                raise NotFoundError("Referred user not found")

            referred_ids: list[int] = []
            for entry in referrer.referral_entries:
                if entry.referred_id is not None and entry.referred_id not in referred_ids:
                    referred_ids.append(entry.referred_id)

            referred_users = []
            for referred_id in referred_ids:
                latest = session.get(Account, referred_id)
                if latest:
                    referred_users.append(ReferredUser(**latest.public_fields).model_dump())

        if not referred_users:
            raise NotFoundError("No referred users found")
        return referred_users

    def convert_referred_points(self, account_id: int) -> dict[str, int]:
        """Convert the whole referral pool into currency.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account has no ledger entries
        """
        with db.session() as session:
            account = lock_account(session, account_id)
            if not account:
                raise NotFoundError("User not found")

            if not account.referral_entries:
                raise ValidationError("No referred points found for the user")

            total_referred_points = sum(entry.points or 0 for entry in account.referral_entries)
            converted = levels.points_to_currency(total_referred_points)

            for entry in account.referral_entries:
                entry.points = 0
            account.converted_balance += converted

            self.logger.info(
                "referral_points_converted",
                account_id=account.id,
                points=total_referred_points,
                converted=converted,
            )
            return {
                "total_referred_points": total_referred_points,
                "converted_balance": account.converted_balance,
            }


# Singleton instance
referral_service = ReferralService()
