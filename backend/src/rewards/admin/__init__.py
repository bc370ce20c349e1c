"""Admin operations."""

from rewards.admin.service import AdminService, admin_service, parse_account_id, parse_eligibility

__all__ = ["AdminService", "admin_service", "parse_account_id", "parse_eligibility"]
