"""Credentials and sessions: password hashing, OTP codes, JWT cookies."""

from rewards.auth.local import LocalAuthService, auth_service
from rewards.auth.middleware import get_current_user, require_admin, require_auth

__all__ = [
    "LocalAuthService",
    "auth_service",
    "get_current_user",
    "require_admin",
    "require_auth",
]
