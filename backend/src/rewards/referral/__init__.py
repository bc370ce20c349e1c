"""Referral ledger.

- Every account gets a ``<name>/referral/<id>`` code at signup
- Signing up with a code adds a zero-point entry to the referrer's ledger
- The referrer is credited when an admin marks the referred account eligible
"""

from rewards.referral.service import ReferralService, referral_service

__all__ = ["ReferralService", "referral_service"]
