"""Account lifecycle: signup, verification, login, password flows."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from rewards.accounts.cards import allocate_card_numbers, colliding_card_field
from rewards.accounts.models import (
    Account,
    AccountStatus,
    Eligibility,
    Feedback,
    FeedbackOut,
    ReferralEntry,
)
from rewards.auth.local import auth_service
from rewards.errors import (
    AuthenticationError,
    CardNumberExhaustedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from rewards.logging_config import get_logger
from rewards.referral import levels
from rewards.referral.service import assign_referral_code, lock_account, referral_service
from rewards.settings import settings
from rewards.storage.db import db

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 3
MIN_INVESTMENT = 1000


@dataclass
class SignupResult:
    """Outcome of a signup: the new account and the OTP to mail."""
    account: Account
    otp: str


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AccountService:
    """Service for account lifecycle operations."""

    def __init__(self):
        """Initialize account service."""
        self.logger = get_logger(__name__)

    # ==================== SIGNUP / VERIFY ====================

    def signup(
        self,
        name: str | None,
        email: str | None,
        phone: int | None,
        password: str | None,
        referral_code: str | None = None,
    ) -> SignupResult:
        """Create a pending account and issue its verification OTP.

        If ``referral_code`` resolves, a zero-point entry is appended to the
        referrer's ledger in the same transaction.

        Each attempt runs in its own transaction. A card number taken by a
        concurrent signup between the exists check and the insert triggers a
        fresh attempt; a concurrent duplicate email is a conflict.

        Raises:
            ValidationError: Missing fields, short password, bad referral code
            ConflictError: Email already registered
            CardNumberExhaustedError: Card numbers kept colliding on insert
        """
        if not name or not email or phone is None or not password:
            raise ValidationError("All fields are required")
        _check_password_length(password)
        if len(name.strip()) < MIN_NAME_LENGTH:
            raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters")

        email = _normalize_email(email)
        password_hash = auth_service.hash_password(password)
        max_attempts = settings.card_number_max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                return self._create_account(name.strip(), email, phone, password_hash, referral_code)
            except IntegrityError as e:
                if "email" in str(e.orig):
                    raise ConflictError("Email already registered!") from e
                field = colliding_card_field(e)
                if field is None:
                    raise
                self.logger.warning("card_number_collision", field=field, attempt=attempt)

        self.logger.error("card_number_exhausted", field=field, attempts=max_attempts)
        raise CardNumberExhaustedError(field, max_attempts)

    def _create_account(
        self,
        name: str,
        email: str,
        phone: int,
        password_hash: str,
        referral_code: str | None,
    ) -> SignupResult:
        with db.session() as session:
            existing = session.scalar(select(Account.id).where(Account.email == email))
            if existing is not None:
                raise ConflictError("Email already registered!")

            referrer = None
            if referral_code:
                referrer = referral_service.resolve_code(session, referral_code)

            account = Account(
                name=name,
                email=email,
                phone=phone,
                password_hash=password_hash,
                status=AccountStatus.PENDING,
                eligibility=Eligibility.UNVERIFIED,
                referred_by_id=referrer.id if referrer else None,
                level=levels.level_for_points(0),
                daily_claim_count=0,
                daily_points=0,
                total_points_earned=0,
                converted_balance=0,
                referral_entries=[],
            )
            allocate_card_numbers(session, account)
            session.add(account)
            session.flush()
            assign_referral_code(account)

            if referrer:
                referral_service.append_entry(referrer, account, points=0)

            otp = auth_service.issue_otp(account)

            self.logger.info(
                "account_created",
                account_id=account.id,
                email=email,
                referred_by=account.referred_by_id,
            )

        return SignupResult(account=account, otp=otp)

    def verify_email(self, email: str | None, otp: str | None) -> Account:
        """Consume the signup OTP and mark the account verified.

        Raises:
            ValidationError: Already verified, or wrong/expired OTP
            NotFoundError: Unknown email
        """
        if not email or not otp:
            raise ValidationError("Email and OTP are required.")

        with db.session() as session:
            account = session.scalar(select(Account).where(Account.email == _normalize_email(email)))
            if not account:
                raise NotFoundError("User not found")

            if account.status == AccountStatus.VERIFIED:
                raise ValidationError("User is already verified")

            if not auth_service.verify_otp(account, otp):
                raise ValidationError("Invalid or expired OTP")

            auth_service.clear_otp(account)
            account.status = AccountStatus.VERIFIED

            self.logger.info("account_verified", account_id=account.id)
            return account

    def resend_verification(self, email: str | None) -> tuple[Account, str]:
        """Issue a fresh signup OTP for a pending account."""
        if not email:
            raise ValidationError("Email is required.")

        with db.session() as session:
            account = session.scalar(select(Account).where(Account.email == _normalize_email(email)))
            if not account:
                raise NotFoundError("User not found")
            if account.status == AccountStatus.VERIFIED:
                raise ValidationError("User is already verified")

            otp = auth_service.issue_otp(account)
            return account, otp

    # ==================== LOGIN ====================

    def login(self, email: str | None, password: str | None) -> Account:
        """Check credentials.

        A still-pending account is deleted and the login rejected.

        Raises:
            ValidationError: Missing fields
            NotFoundError: Unknown email
            AuthenticationError: Wrong password
            ForbiddenError: Account was pending and has been deleted
        """
        if not email or not password:
            raise ValidationError("Email and password are required.")

        with db.session() as session:
            account = session.scalar(select(Account).where(Account.email == _normalize_email(email)))
            if not account:
                raise NotFoundError("User Not Found")

            if not auth_service.verify_password(password, account.password_hash):
                self.logger.warning("login_failed", account_id=account.id)
                raise AuthenticationError("Invalid Email or Password")

            if account.status == AccountStatus.PENDING:
                account_id = account.id
                self._delete(session, account)
                self.logger.warning("unverified_account_deleted_on_login", account_id=account_id)
                pending = True
            else:
                pending = False
                self.logger.info("user_logged_in", account_id=account.id)

        # Raised after the session commits so the deletion sticks
        if pending:
            raise ForbiddenError(
                "Your account was not verified and has been deleted. Please sign up again."
            )
        return account

    # ==================== PASSWORD RESET ====================

    def request_password_reset(self, email: str | None) -> tuple[Account, str]:
        """Issue a password-reset OTP, overwriting any stored code."""
        if not email:
            raise ValidationError("Email is required.")

        with db.session() as session:
            account = session.scalar(select(Account).where(Account.email == _normalize_email(email)))
            if not account:
                raise NotFoundError("User not found with this email.")

            otp = auth_service.issue_otp(account)
            self.logger.info("password_reset_requested", account_id=account.id)
            return account, otp

    def verify_reset_otp(self, email: str | None, otp: str | None) -> None:
        """Check a password-reset OTP without consuming it."""
        if not email or not otp:
            raise ValidationError("Email and OTP are required.")

        with db.session() as session:
            account = session.scalar(select(Account).where(Account.email == _normalize_email(email)))
            if not account:
                raise NotFoundError("User not found with this email.")

            if not auth_service.verify_otp(account, otp):
                raise ValidationError("Invalid or Expired OTP.")

    def reset_password(self, email: str | None, password: str | None) -> None:
        """Set a new password; requires a stored, unexpired reset OTP."""
        if not email or not password:
            raise ValidationError("Email and Password are required.")
        _check_password_length(password)

        with db.session() as session:
            account = session.scalar(select(Account).where(Account.email == _normalize_email(email)))
            if not account:
                raise NotFoundError("User not found with this email.")

            expired = account.otp_expires_at is not None and datetime.utcnow() > account.otp_expires_at
            if not account.otp or expired:
                raise ValidationError("OTP not verified. Please verify your OTP first.")

            account.password_hash = auth_service.hash_password(password)
            auth_service.clear_otp(account)
            self.logger.info("password_reset", account_id=account.id)

    def change_password(
        self,
        account_id: int,
        old_password: str | None,
        password: str | None,
        confirm_password: str | None,
    ) -> None:
        """Change password for a logged-in account."""
        if not old_password or not password or not confirm_password:
            raise ValidationError("Please provide all the required fields")

        with db.session() as session:
            account = session.get(Account, account_id)
            if not account:
                raise NotFoundError("User not found")

            if not auth_service.verify_password(old_password, account.password_hash):
                raise AuthenticationError("Old password is incorrect")

            if password != confirm_password:
                raise ValidationError("Passwords do not match")
            _check_password_length(password)

            account.password_hash = auth_service.hash_password(password)
            self.logger.info("password_changed", account_id=account_id)

    # ==================== PROFILE ====================

    def get_account(self, account_id: int) -> Account:
        """Get account by ID."""
        with db.session() as session:
            account = session.get(Account, account_id)
            if not account:
                raise NotFoundError("User not found")
            return account

    def get_account_by_email(self, email: str) -> Account | None:
        """Get account by email."""
        with db.session() as session:
            return session.scalar(select(Account).where(Account.email == _normalize_email(email)))

    def list_accounts(self) -> list[Account]:
        """All accounts, oldest first."""
        with db.session() as session:
            return list(session.scalars(select(Account).order_by(Account.id)))

    def submit_feedback(self, account_id: int, content: str | None) -> FeedbackOut:
        """Replace the account's feedback with ``content``."""
        if not content or not content.strip():
            raise ValidationError("Feedback content is required")

        with db.session() as session:
            account = session.get(Account, account_id)
            if not account:
                raise NotFoundError("User not found")

            session.execute(delete(Feedback).where(Feedback.account_id == account_id))
            session.flush()

            feedback = Feedback(account_id=account_id, content=content.strip())
            session.add(feedback)
            session.flush()

            self.logger.info("feedback_submitted", account_id=account_id, feedback_id=feedback.id)
            return FeedbackOut(
                id=feedback.id,
                content=feedback.content,
                created_at=feedback.created_at,
                author_name=account.name,
                author_email=account.email,
            )

    def record_investment(self, account_id: int, amount: float | None) -> Account:
        """Mark an account as having invested; eligibility moves to pending.

        Accounts already pending or verified keep their eligibility.
        """
        if amount is None or amount < MIN_INVESTMENT:
            raise ValidationError(f"Amount is compulsory and must be at least {MIN_INVESTMENT}")

        with db.session() as session:
            account = lock_account(session, account_id)
            if not account:
                raise NotFoundError("User not found")

            if account.eligibility == Eligibility.UNVERIFIED:
                account.eligibility = Eligibility.PENDING

            self.logger.info("investment_recorded", account_id=account_id, eligibility=account.eligibility.value)
            return account

    def set_payment_image(self, account_id: int, path: str) -> Account:
        """Store the uploaded payment-proof path."""
        with db.session() as session:
            account = session.get(Account, account_id)
            if not account:
                raise NotFoundError("User not found")
            account.payment_image = path
            return account

    # ==================== DELETION ====================

    def _delete(self, session, account: Account) -> None:
        """Delete an account inside an open session.

        Ledger entries pointing at it are tombstoned, accounts it referred
        lose their referrer link, its own withdrawals go with it.
        """
        from rewards.withdrawals.models import Withdrawal

        session.execute(
            update(ReferralEntry)
            .where(ReferralEntry.referred_id == account.id)
            .values(referred_id=None)
        )
        session.execute(
            update(Account)
            .where(Account.referred_by_id == account.id)
            .values(referred_by_id=None)
        )
        session.execute(delete(Withdrawal).where(Withdrawal.account_id == account.id))
        session.execute(delete(Feedback).where(Feedback.account_id == account.id))
        session.delete(account)

    def delete_account(self, account_id: int) -> Account:
        """Delete an account by ID."""
        with db.session() as session:
            account = session.get(Account, account_id)
            if not account:
                raise NotFoundError("User not found")
            self._delete(session, account)
            self.logger.info("account_deleted", account_id=account_id)
            return account


# Singleton instance
account_service = AccountService()
