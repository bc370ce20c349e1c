"""Credential and session service (passwords, OTP codes, JWT cookies)."""

import secrets
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from rewards.accounts.models import Account
from rewards.logging_config import get_logger
from rewards.settings import settings
from rewards.storage.db import db

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

OTP_MIN = 1000
OTP_MAX = 9999


class LocalAuthService:
    """Credential service for email/password accounts."""

    def __init__(self):
        """Initialize auth service."""
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash_password(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain password

        Returns:
            Hashed password
        """
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str) -> bool:
        """Verify a password against hash.

        Args:
            password: Plain password
            hashed: Hashed password

        Returns:
            True if matches
        """
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== OTP ====================

    def issue_otp(self, account: Account, now: datetime | None = None) -> str:
        """Generate a 4-digit code and store it on the account.

        Overwrites any earlier unconsumed code. The caller commits.

        Args:
            account: Account to issue the code for
            now: Current time (defaults to utcnow)

        Returns:
            The generated code
        """
        now = now or datetime.utcnow()
        otp = str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))
        account.otp = otp
        account.otp_expires_at = now + timedelta(minutes=settings.otp_expire_minutes)
        self.logger.info("otp_issued", account_id=account.id)
        return otp

    def verify_otp(self, account: Account, candidate: str | None, now: datetime | None = None) -> bool:
        """Check a candidate code against the stored one.

        Fails when no code is stored, the code differs or it has expired.
        Does not clear the code.
        """
        if not account.otp or not candidate or account.otp_expires_at is None:
            return False
        now = now or datetime.utcnow()
        if now > account.otp_expires_at:
            return False
        return secrets.compare_digest(account.otp, str(candidate))

    def clear_otp(self, account: Account) -> None:
        """Consume the stored code."""
        account.otp = None
        account.otp_expires_at = None

    # ==================== SESSION TOKENS ====================

    def create_session_token(
        self,
        account: Account,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create JWT session token.

        Args:
            account: Account to bind the token to
            expires_delta: Optional expiration time

        Returns:
            JWT token string
        """
        if expires_delta is None:
            expires_delta = timedelta(days=settings.session_expire_days)

        now = datetime.utcnow()
        payload = {
            "sub": str(account.id),
            "exp": now + expires_delta,
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def verify_token(self, token: str) -> dict[str, Any] | None:
        """Verify and decode JWT token.

        Args:
            token: JWT token string

        Returns:
            Token payload or None if invalid
        """
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except JWTError as e:
            self.logger.debug("token_verification_failed", error=str(e))
            return None

    def get_account_from_token(self, token: str) -> Account | None:
        """Get account from JWT token."""
        payload = self.verify_token(token)
        if not payload:
            return None

        account_id = payload.get("sub")
        if not account_id or not str(account_id).isdigit():
            return None

        with db.session() as session:
            return session.get(Account, int(account_id))


# Singleton instance
auth_service = LocalAuthService()
