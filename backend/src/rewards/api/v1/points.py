"""Points API v1 endpoints."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from rewards.accounts.models import Account, serialize_account
from rewards.accounts.service import account_service
from rewards.api.rate_limit import limiter
from rewards.auth.middleware import require_auth
from rewards.logging_config import get_logger
from rewards.points.service import points_service

logger = get_logger(__name__)

router = APIRouter(prefix="/points", tags=["points"])


# ==================== MODELS ====================


class InvestmentRequest(BaseModel):
    """Declared investment amount."""
    amount: float | None = None


# ==================== ENDPOINTS ====================


@router.post("/daily-claim")
@limiter.limit("30/minute")
async def daily_claim(request: Request, user: Account = Depends(require_auth)):
    """Claim the daily increment (up to five times a day)."""
    result = points_service.daily_claim(user.id)
    return {"success": True, "message": "Daily points claimed successfully", **result}


@router.post("/convert")
async def convert_points(user: Account = Depends(require_auth)):
    """Convert the daily pool into balance."""
    result = points_service.convert_points(user.id)
    return {"success": True, "message": "Points converted successfully", **result}


@router.post("/investment")
async def record_investment(body: InvestmentRequest, user: Account = Depends(require_auth)):
    """Record an investment; eligibility moves to pending."""
    account = account_service.record_investment(user.id, body.amount)
    return {
        "success": True,
        "message": "Investment recorded. Eligibility is pending review.",
        "user": serialize_account(account),
    }
