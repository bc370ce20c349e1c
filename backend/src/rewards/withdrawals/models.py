"""Withdrawal request model."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel
from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from rewards.storage.db import Base


class WithdrawalStatus(str, Enum):
    """Withdrawal processing state."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Withdrawal(Base):
    """Request to pay out part of the converted balance."""

    __tablename__ = "withdrawals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(String(50), nullable=False)
    account_number: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[WithdrawalStatus] = mapped_column(
        SQLEnum(WithdrawalStatus), default=WithdrawalStatus.PENDING, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Withdrawal(id={self.id}, account={self.account_id}, amount={self.amount}, status={self.status})>"


class WithdrawalOut(BaseModel):
    """Withdrawal data for API responses."""
    id: int
    account_id: int
    amount: int
    method: str
    account_number: str
    status: WithdrawalStatus
    created_at: datetime
    processed_at: datetime | None

    class Config:
        from_attributes = True
