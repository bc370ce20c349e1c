"""Withdrawal requests against the converted balance."""

from datetime import datetime

from sqlalchemy import select

from rewards.errors import NotFoundError, ValidationError
from rewards.logging_config import get_logger
from rewards.referral.service import lock_account
from rewards.storage.db import db
from rewards.withdrawals.models import Withdrawal, WithdrawalStatus

logger = get_logger(__name__)


class WithdrawalService:
    """Service for withdrawal requests.

    The balance is checked when a request is made and deducted only when an
    admin approves it.
    """

    def __init__(self):
        """Initialize withdrawal service."""
        self.logger = get_logger(__name__)

    def request(
        self,
        account_id: int,
        amount: int | None,
        method: str | None,
        account_number: str | None,
    ) -> Withdrawal:
        """Create a pending withdrawal.

        Raises:
            ValidationError: Missing fields, non-positive amount, insufficient balance
            NotFoundError: Unknown account
        """
        if amount is None or not method or not account_number:
            raise ValidationError("Amount, method and account number are required")
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        with db.session() as session:
            account = lock_account(session, account_id)
            if not account:
                raise NotFoundError("User not found")

            if amount > account.converted_balance:
                raise ValidationError("Insufficient balance")

            withdrawal = Withdrawal(
                account_id=account_id,
                amount=amount,
                method=method.strip(),
                account_number=account_number.strip(),
                status=WithdrawalStatus.PENDING,
            )
            session.add(withdrawal)
            session.flush()

            self.logger.info(
                "withdrawal_requested",
                withdrawal_id=withdrawal.id,
                account_id=account_id,
                amount=amount,
            )
            return withdrawal

    def list_for_account(self, account_id: int) -> list[Withdrawal]:
        """Withdrawals of one account, newest first."""
        with db.session() as session:
            return list(session.scalars(
                select(Withdrawal)
                .where(Withdrawal.account_id == account_id)
                .order_by(Withdrawal.id.desc())
            ))

    def list_all(self, status: WithdrawalStatus | None = None) -> list[Withdrawal]:
        """All withdrawals, optionally filtered by status."""
        with db.session() as session:
            query = select(Withdrawal).order_by(Withdrawal.id.desc())
            if status is not None:
                query = query.where(Withdrawal.status == status)
            return list(session.scalars(query))

    def update_status(self, withdrawal_id: int, status: str | None) -> Withdrawal:
        """Approve or reject a pending withdrawal.

        Raises:
            ValidationError: Bad status, already processed, insufficient balance
            NotFoundError: Unknown withdrawal or account
        """
        if not status:
            raise ValidationError("Status is required")
        try:
            new_status = WithdrawalStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid withdrawal status: {status}")
        if new_status == WithdrawalStatus.PENDING:
            raise ValidationError("Status must be approved or rejected")

        with db.session() as session:
            withdrawal = session.scalar(
                select(Withdrawal).where(Withdrawal.id == withdrawal_id).with_for_update()
            )
            if not withdrawal:
                raise NotFoundError("Withdrawal not found")

            if withdrawal.status != WithdrawalStatus.PENDING:
                raise ValidationError("Withdrawal already processed")

            if new_status == WithdrawalStatus.APPROVED:
                account = lock_account(session, withdrawal.account_id)
                if not account:
                    raise NotFoundError("User not found")
                if withdrawal.amount > account.converted_balance:
                    raise ValidationError("Insufficient balance")
                account.converted_balance -= withdrawal.amount

            withdrawal.status = new_status
            withdrawal.processed_at = datetime.utcnow()

            self.logger.info(
                "withdrawal_processed",
                withdrawal_id=withdrawal_id,
                account_id=withdrawal.account_id,
                status=new_status.value,
            )
            return withdrawal


# Singleton instance
withdrawal_service = WithdrawalService()
