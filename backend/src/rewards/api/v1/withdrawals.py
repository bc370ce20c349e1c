"""Withdrawal API v1 endpoints."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from rewards.accounts.models import Account
from rewards.auth.middleware import require_auth
from rewards.logging_config import get_logger
from rewards.withdrawals.models import WithdrawalOut
from rewards.withdrawals.service import withdrawal_service

logger = get_logger(__name__)

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])


class WithdrawalRequest(BaseModel):
    """Payout request against the converted balance."""
    amount: int | None = None
    method: str | None = None
    account_number: str | None = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def request_withdrawal(body: WithdrawalRequest, user: Account = Depends(require_auth)):
    """Create a pending withdrawal."""
    withdrawal = withdrawal_service.request(
        account_id=user.id,
        amount=body.amount,
        method=body.method,
        account_number=body.account_number,
    )
    return {
        "success": True,
        "message": "Withdrawal request submitted",
        "withdrawal": WithdrawalOut.model_validate(withdrawal).model_dump(mode="json"),
    }


@router.get("")
async def list_withdrawals(user: Account = Depends(require_auth)):
    """List the current account's withdrawals."""
    withdrawals = withdrawal_service.list_for_account(user.id)
    return {
        "success": True,
        "withdrawals": [WithdrawalOut.model_validate(w).model_dump(mode="json") for w in withdrawals],
    }
