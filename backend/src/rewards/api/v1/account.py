"""Account API v1 endpoints: feedback and payment proof."""

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from pydantic import BaseModel

from rewards.accounts.models import Account, serialize_account
from rewards.accounts.service import account_service
from rewards.api.rate_limit import limiter
from rewards.auth.middleware import require_auth
from rewards.email.service import email_service
from rewards.errors import ValidationError
from rewards.logging_config import get_logger
from rewards.settings import settings
from rewards.storage.uploads import save_upload

logger = get_logger(__name__)

router = APIRouter(prefix="/account", tags=["account"])


class FeedbackRequest(BaseModel):
    """Feedback submission."""
    content: str | None = None


@router.post("/feedback", status_code=status.HTTP_201_CREATED)
async def submit_feedback(body: FeedbackRequest, user: Account = Depends(require_auth)):
    """Submit feedback, replacing any earlier feedback."""
    feedback = account_service.submit_feedback(user.id, body.content)
    return {
        "success": True,
        "message": "Feedback submitted successfully",
        "feedback": feedback.model_dump(mode="json"),
    }


@router.post("/payment-image")
@limiter.limit("5/minute")
async def upload_payment_image(
    request: Request,
    file: UploadFile | None = File(default=None),
    user: Account = Depends(require_auth),
):
    """Store a payment proof and notify the user and the admin address.

    The path is recorded on the account only after both mails went out.
    """
    if file is None or not file.filename:
        raise ValidationError("File is required")

    path = save_upload(file.file, file.filename, owner_id=user.id)

    await email_service.send_payment_image_received(user.email)
    if settings.admin_email:
        await email_service.send_payment_image_admin_notice(
            admin_email=settings.admin_email,
            user_name=user.name,
            user_email=user.email,
            image_path=path,
        )

    account = account_service.set_payment_image(user.id, path)

    return {
        "success": True,
        "message": "Image uploaded and email sent successfully",
        "user": serialize_account(account),
    }
