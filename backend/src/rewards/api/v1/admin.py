"""Admin API v1 endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from rewards.accounts.models import Account, serialize_account
from rewards.accounts.service import account_service
from rewards.admin.service import admin_service, parse_account_id, parse_eligibility
from rewards.auth.middleware import require_admin
from rewards.email.service import email_service
from rewards.errors import ValidationError
from rewards.logging_config import get_logger
from rewards.withdrawals.models import WithdrawalOut, WithdrawalStatus
from rewards.withdrawals.service import withdrawal_service

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ==================== MODELS ====================


class StatusRequest(BaseModel):
    """Eligibility or withdrawal status change."""
    status: str | None = None


class RoleRequest(BaseModel):
    """Role change."""
    role: str | None = None


# ==================== USERS ====================


@router.get("/users")
async def list_users(admin: Account = Depends(require_admin)):
    """List all accounts."""
    accounts = account_service.list_accounts()
    return {
        "success": True,
        "count": len(accounts),
        "users": [serialize_account(a) for a in accounts],
    }


@router.put("/users/{user_id}/eligibility")
async def update_eligibility(user_id: str, body: StatusRequest, admin: Account = Depends(require_admin)):
    """Set a user's eligibility and email them.

    A transition to verified credits the user's referrer.
    """
    account_id = parse_account_id(user_id)
    eligibility = parse_eligibility(body.status)
    account = account_service.get_account(account_id)

    await email_service.send_eligibility_update(
        to_email=account.email,
        user_name=account.name,
        status=eligibility.value,
    )

    account, credited = admin_service.update_eligibility(account_id, eligibility)
    logger.info("admin_eligibility_update", admin_id=admin.id, account_id=account_id, credited=credited)

    return {
        "success": True,
        "message": "Eligibility status updated successfully",
        "user": serialize_account(account),
        "referrer_points_credited": credited,
    }


@router.put("/users/{user_id}/role")
async def update_role(user_id: str, body: RoleRequest, admin: Account = Depends(require_admin)):
    """Change a user's role."""
    account = admin_service.update_role(parse_account_id(user_id), body.role)
    return {
        "success": True,
        "message": "User role updated successfully",
        "user": serialize_account(account),
    }


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, admin: Account = Depends(require_admin)):
    """Delete a user; referral entries pointing at it are kept."""
    account_id = parse_account_id(user_id)
    if account_id == admin.id:
        raise ValidationError("You cannot delete your own account")

    account_service.delete_account(account_id)
    logger.info("admin_deleted_user", admin_id=admin.id, account_id=account_id)
    return {"success": True, "message": "User deleted successfully"}


# ==================== WITHDRAWALS ====================


@router.get("/withdrawals")
async def list_all_withdrawals(status: str | None = None, admin: Account = Depends(require_admin)):
    """List every withdrawal, optionally filtered by status."""
    status_filter = None
    if status:
        try:
            status_filter = WithdrawalStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid withdrawal status: {status}")

    withdrawals = withdrawal_service.list_all(status_filter)
    return {
        "success": True,
        "count": len(withdrawals),
        "withdrawals": [WithdrawalOut.model_validate(w).model_dump(mode="json") for w in withdrawals],
    }


@router.put("/withdrawals/{withdrawal_id}/status")
async def update_withdrawal_status(
    withdrawal_id: int,
    body: StatusRequest,
    admin: Account = Depends(require_admin),
):
    """Approve or reject a pending withdrawal."""
    withdrawal = withdrawal_service.update_status(withdrawal_id, body.status)
    return {
        "success": True,
        "message": f"Withdrawal {withdrawal.status.value}",
        "withdrawal": WithdrawalOut.model_validate(withdrawal).model_dump(mode="json"),
    }
