"""Accounts: identity, lifecycle state and the points ledger fields."""

from rewards.accounts.models import Account, AccountStatus, Eligibility, Feedback, ReferralEntry, Role

__all__ = ["Account", "AccountStatus", "Eligibility", "Feedback", "ReferralEntry", "Role"]
