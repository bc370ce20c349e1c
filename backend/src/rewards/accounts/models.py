"""Account, referral ledger and feedback models."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import JSON, BigInteger, Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rewards.storage.db import Base


class AccountStatus(str, Enum):
    """Email verification state."""
    PENDING = "pending"
    VERIFIED = "verified"


class Eligibility(str, Enum):
    """Gate for referral-point attribution."""
    UNVERIFIED = "unverified"
    PENDING = "pending"      # Investment submitted, awaiting admin
    VERIFIED = "verified"


class Role(str, Enum):
    """Account role."""
    USER = "User"
    ADMIN = "admin"


class Account(Base):
    """User identity plus points ledger."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[int] = mapped_column(BigInteger, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(SQLEnum(Role), default=Role.USER, nullable=False)
    status: Mapped[AccountStatus] = mapped_column(
        SQLEnum(AccountStatus), default=AccountStatus.PENDING, nullable=False
    )

    # One-time code (email verification and password reset share it)
    otp: Mapped[str | None] = mapped_column(String(8), nullable=True)
    otp_expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    eligibility: Mapped[Eligibility] = mapped_column(
        SQLEnum(Eligibility), default=Eligibility.UNVERIFIED, nullable=False
    )

    # Referral
    referral_code: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True, index=True)
    referred_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Points
    daily_claim_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_claim_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    daily_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_points_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    converted_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Payment metadata
    card_number_1: Mapped[str | None] = mapped_column(String(3), unique=True, nullable=True)
    card_number_2: Mapped[str | None] = mapped_column(String(5), unique=True, nullable=True)
    card_number_3: Mapped[str | None] = mapped_column(String(2), unique=True, nullable=True)
    payment_image: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    referral_entries: Mapped[list["ReferralEntry"]] = relationship(
        back_populates="referrer",
        foreign_keys="ReferralEntry.referrer_id",
        order_by="ReferralEntry.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    feedback: Mapped["Feedback | None"] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email}, status={self.status})>"

    @property
    def public_fields(self) -> dict[str, Any]:
        """Fields other users may see about this account."""
        return {
            "name": self.name,
            "email": self.email,
            "level": self.level,
            "total_points_earned": self.total_points_earned,
            "referral_code": self.referral_code,
        }


class ReferralEntry(Base):
    """One row of a referrer's ordered referred-accounts list.

    ``snapshot`` holds the referred account's public fields as they were
    when the entry was written. ``referred_id`` is set to NULL when the
    referred account is deleted; points and snapshot stay.
    """

    __tablename__ = "referral_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    referred_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    referrer: Mapped[Account] = relationship(back_populates="referral_entries", foreign_keys=[referrer_id])

    def __repr__(self):
        return f"<ReferralEntry(referrer={self.referrer_id}, referred={self.referred_id}, points={self.points})>"


class Feedback(Base):
    """Free-text feedback, at most one per account."""

    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    account: Mapped[Account] = relationship(back_populates="feedback")


# Pydantic models for API


class ReferralEntryOut(BaseModel):
    """Ledger entry as returned to the account owner."""
    id: int
    referred_id: int | None
    points: int
    snapshot: dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


class AccountOut(BaseModel):
    """Account data for API responses."""
    id: int
    name: str
    email: str
    phone: int
    role: Role
    status: AccountStatus
    eligibility: Eligibility
    referral_code: str | None
    referred_by_id: int | None
    level: int
    daily_claim_count: int
    last_claim_date: date | None
    daily_points: int
    total_points_earned: int
    converted_balance: int
    card_number_1: str | None
    card_number_2: str | None
    card_number_3: str | None
    payment_image: str | None
    referral_entries: list[ReferralEntryOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ReferredUser(BaseModel):
    """Live public view of a referred account."""
    name: str
    email: str
    level: int
    total_points_earned: int
    referral_code: str | None


class FeedbackOut(BaseModel):
    """Feedback with its author."""
    id: int
    content: str
    created_at: datetime
    author_name: str
    author_email: str


def serialize_account(account: Account) -> dict[str, Any]:
    """Render an account as a JSON-ready dict."""
    return AccountOut.model_validate(account).model_dump(mode="json")
