"""Admin overrides: eligibility, role and forced deletion."""

from rewards.accounts.models import Account, Eligibility, Role
from rewards.errors import NotFoundError, ValidationError
from rewards.logging_config import get_logger
from rewards.referral.service import lock_account, referral_service
from rewards.storage.db import db

logger = get_logger(__name__)


def parse_account_id(raw: str | int) -> int:
    """Parse a path identifier.

    Raises:
        ValidationError: If it is not a positive integer
    """
    text = str(raw).strip()
    if not text.isdigit() or int(text) <= 0:
        raise ValidationError("Invalid user ID format")
    return int(text)


def parse_eligibility(status: str | None) -> Eligibility:
    """Parse an eligibility value from a request body."""
    if not status:
        raise ValidationError("Status is required")
    try:
        return Eligibility(status)
    except ValueError:
        allowed = ", ".join(e.value for e in Eligibility)
        raise ValidationError(f"Invalid eligibility status. Allowed: {allowed}")


class AdminService:
    """Service for admin-only account mutations."""

    def __init__(self):
        """Initialize admin service."""
        self.logger = get_logger(__name__)

    def update_eligibility(self, account_id: int, eligibility: Eligibility) -> tuple[Account, int]:
        """Set eligibility and credit the referrer on a transition to verified.

        The referrer is credited in the same transaction, and only when the
        account was not already verified.

        Returns:
            The updated account and the points credited to its referrer
        """
        with db.session() as session:
            account = lock_account(session, account_id)
            if not account:
                raise NotFoundError("User not found")

            previous = account.eligibility
            account.eligibility = eligibility

            credited = 0
            if eligibility == Eligibility.VERIFIED and previous != Eligibility.VERIFIED:
                credited = referral_service.credit_referrer(session, account)

            self.logger.info(
                "eligibility_updated",
                account_id=account_id,
                previous=previous.value,
                eligibility=eligibility.value,
                referrer_credited=credited,
            )
            return account, credited

    def update_role(self, account_id: int, role: str | None) -> Account:
        """Change an account's role."""
        if not role:
            raise ValidationError("Role is required")
        try:
            new_role = Role(role)
        except ValueError:
            allowed = ", ".join(r.value for r in Role)
            raise ValidationError(f"Invalid role. Allowed: {allowed}")

        with db.session() as session:
            account = session.get(Account, account_id)
            if not account:
                raise NotFoundError("User not found")

            account.role = new_role
            self.logger.info("role_updated", account_id=account_id, role=new_role.value)
            return account


# Singleton instance
admin_service = AdminService()
