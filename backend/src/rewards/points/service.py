"""Daily point claims and daily-pool conversion."""

from datetime import date, datetime

from rewards.errors import NotFoundError, ValidationError
from rewards.logging_config import get_logger
from rewards.referral import levels
from rewards.referral.service import lock_account
from rewards.storage.db import db

logger = get_logger(__name__)

DAILY_CLAIM_LIMIT = 5
DAILY_CLAIM_POINTS = 20


def today() -> date:
    """Current calendar day (UTC)."""
    return datetime.utcnow().date()


class PointsService:
    """Service for the daily points pool."""

    def __init__(self):
        """Initialize points service."""
        self.logger = get_logger(__name__)

    def daily_claim(self, account_id: int, on: date | None = None) -> dict[str, int]:
        """Claim the fixed daily increment.

        The counter resets the first time it is touched on a new day.

        Args:
            account_id: Claiming account
            on: Claim day (defaults to today)

        Returns:
            Dict with the day's claim count and the pools after the claim

        Raises:
            NotFoundError: Unknown account
            ValidationError: Daily limit already reached
        """
        on = on or today()

        with db.session() as session:
            account = lock_account(session, account_id)
            if not account:
                raise NotFoundError("User not found")

            if account.last_claim_date != on:
                account.daily_claim_count = 0
                account.last_claim_date = on

            if account.daily_claim_count >= DAILY_CLAIM_LIMIT:
                limit_reached = True
            else:
                limit_reached = False
                account.daily_claim_count += 1
                account.daily_points += DAILY_CLAIM_POINTS
                account.total_points_earned += DAILY_CLAIM_POINTS
                account.level = levels.recompute_level(
                    account.level,
                    account.total_points_earned,
                    len(account.referral_entries),
                )
                self.logger.info(
                    "daily_points_claimed",
                    account_id=account_id,
                    count=account.daily_claim_count,
                    daily_points=account.daily_points,
                )

            result = {
                "daily_claim_count": account.daily_claim_count,
                "daily_points": account.daily_points,
                "total_points_earned": account.total_points_earned,
                "level": account.level,
            }

        # Raised after commit so a same-day reset is still persisted
        if limit_reached:
            raise ValidationError("Daily claim limit reached. Try again tomorrow.")
        return result

    def convert_points(self, account_id: int) -> dict[str, int]:
        """Convert the daily pool into currency and empty it.

        A zero pool converts to zero and still succeeds.
        """
        with db.session() as session:
            account = lock_account(session, account_id)
            if not account:
                raise NotFoundError("User not found")

            pool = account.daily_points or 0
            converted = levels.points_to_currency(pool)
            account.converted_balance += converted
            account.daily_points = 0

            self.logger.info(
                "daily_points_converted",
                account_id=account_id,
                points=pool,
                converted=converted,
            )
            return {
                "daily_points": account.daily_points,
                "converted_balance": account.converted_balance,
            }


# Singleton instance
points_service = PointsService()
