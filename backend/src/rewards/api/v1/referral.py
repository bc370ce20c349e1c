"""Referral API v1 endpoints."""

from fastapi import APIRouter, Depends

from rewards.accounts.models import Account, Role
from rewards.auth.middleware import require_auth
from rewards.errors import ForbiddenError
from rewards.logging_config import get_logger
from rewards.referral.service import referral_service

logger = get_logger(__name__)

router = APIRouter(prefix="/referral", tags=["referral"])


@router.get("/code")
async def get_referral_code(user: Account = Depends(require_auth)):
    """Get current user's referral code."""
    return {"success": True, "referral_code": user.referral_code}


@router.get("/referred-users")
async def get_referred_users(referral_code: str | None = None, user: Account = Depends(require_auth)):
    """List the accounts referred by a code, read live.

    Regular users may only look up their own code; admins may look up any.
    """
    if referral_code and user.role != Role.ADMIN and referral_code.strip() != user.referral_code:
        logger.warning("referral_lookup_denied", account_id=user.id)
        raise ForbiddenError("You can only view your own referred users")

    referred_users = referral_service.get_referred_user_data(referral_code)
    return {"success": True, "referred_users": referred_users}


@router.post("/convert")
async def convert_referred_points(user: Account = Depends(require_auth)):
    """Convert the whole referral pool into balance."""
    result = referral_service.convert_referred_points(user.id)
    return {
        "success": True,
        "message": "Referred points converted successfully",
        **result,
    }
