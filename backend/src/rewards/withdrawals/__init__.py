"""Withdrawal requests."""

from rewards.withdrawals.models import Withdrawal, WithdrawalOut, WithdrawalStatus
from rewards.withdrawals.service import WithdrawalService, withdrawal_service

__all__ = ["Withdrawal", "WithdrawalOut", "WithdrawalStatus", "WithdrawalService", "withdrawal_service"]
