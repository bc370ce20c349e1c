"""Authentication API v1 endpoints."""

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, EmailStr, Field

from rewards.accounts.models import Account, serialize_account
from rewards.accounts.service import account_service
from rewards.api.rate_limit import limiter
from rewards.auth.local import auth_service
from rewards.auth.middleware import require_auth
from rewards.email.service import email_service
from rewards.errors import MailDeliveryError
from rewards.logging_config import get_logger
from rewards.settings import settings

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ==================== MODELS ====================


class SignupRequest(BaseModel):
    """Signup request. Required fields are checked by the service."""
    name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: int | None = None
    password: str | None = Field(default=None, max_length=128)
    referral_code: str | None = Field(default=None, max_length=320)


class VerifyEmailRequest(BaseModel):
    """Signup OTP confirmation."""
    email: EmailStr | None = None
    otp: str | None = None


class EmailRequest(BaseModel):
    """Request carrying only an email."""
    email: EmailStr | None = None


class LoginRequest(BaseModel):
    """Login request."""
    email: EmailStr | None = None
    password: str | None = None


class ResetPasswordRequest(BaseModel):
    """New password after a verified reset OTP."""
    email: EmailStr | None = None
    password: str | None = Field(default=None, max_length=128)


class ChangePasswordRequest(BaseModel):
    """Change password request."""
    old_password: str | None = None
    password: str | None = Field(default=None, max_length=128)
    confirm_password: str | None = None


# ==================== SESSION COOKIE ====================


def set_session_cookie(response: Response, account: Account) -> str:
    """Issue a session token and attach it as an HTTP-only cookie."""
    token = auth_service.create_session_token(account)
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.session_expire_days * 24 * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return token


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie."""
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


# ==================== ENDPOINTS ====================


@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def signup(request: Request, body: SignupRequest):
    """Register a new account and email its verification OTP.

    The account stays in place if the email cannot be sent.
    """
    result = account_service.signup(
        name=body.name,
        email=body.email,
        phone=body.phone,
        password=body.password,
        referral_code=body.referral_code,
    )

    try:
        await email_service.send_verification_otp(
            to_email=result.account.email,
            user_name=result.account.name,
            otp=result.otp,
        )
    except MailDeliveryError:
        logger.error("verification_email_failed", account_id=result.account.id)
        raise MailDeliveryError("Failed to send verification email. Please try again.")

    return {
        "success": True,
        "message": "OTP sent to email. Verify your account.",
        "user": serialize_account(result.account),
    }


@router.post("/verify-email")
async def verify_email(body: VerifyEmailRequest, response: Response):
    """Confirm the signup OTP and start a session."""
    account = account_service.verify_email(body.email, body.otp)
    set_session_cookie(response, account)

    return {
        "success": True,
        "message": "User verified successfully",
        "user": serialize_account(account),
    }


@router.post("/resend-verification")
@limiter.limit("3/minute")
async def resend_verification(request: Request, body: EmailRequest):
    """Send a fresh signup OTP to a pending account."""
    account, otp = account_service.resend_verification(body.email)
    await email_service.send_verification_otp(
        to_email=account.email,
        user_name=account.name,
        otp=otp,
    )
    return {"success": True, "message": "OTP sent to email. Verify your account."}


@router.post("/login")
@limiter.limit("10/minute")
async def login(request: Request, body: LoginRequest, response: Response):
    """Login with email and password.

    A pending (never verified) account is deleted instead.
    """
    account = account_service.login(body.email, body.password)
    token = set_session_cookie(response, account)

    return {
        "success": True,
        "message": "User Logged In Successfully",
        "user": serialize_account(account),
        "token": token,
    }


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie."""
    clear_session_cookie(response)
    return {"success": True, "message": "User Logged Out Successfully"}


@router.post("/forgot-password")
@limiter.limit("3/minute")
async def forgot_password(request: Request, body: EmailRequest):
    """Email a password-reset OTP."""
    account, otp = account_service.request_password_reset(body.email)
    await email_service.send_password_reset_otp(
        to_email=account.email,
        user_name=account.name,
        otp=otp,
    )
    return {"success": True, "message": "OTP sent successfully!"}


@router.post("/forgot-password/verify")
@limiter.limit("10/minute")
async def verify_reset_otp(request: Request, body: VerifyEmailRequest):
    """Check a password-reset OTP."""
    account_service.verify_reset_otp(body.email, body.otp)
    return {"success": True, "message": "OTP verified successfully."}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest):
    """Set a new password after the reset OTP was issued."""
    account_service.reset_password(body.email, body.password)
    return {"success": True, "message": "Password reset successfully."}


@router.get("/me")
async def get_profile(user: Account = Depends(require_auth)):
    """Get current account."""
    return {"success": True, "user": serialize_account(user)}


@router.put("/password")
async def change_password(body: ChangePasswordRequest, user: Account = Depends(require_auth)):
    """Change password of the current account."""
    account_service.change_password(
        account_id=user.id,
        old_password=body.old_password,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    return {"success": True, "message": "Password updated successfully"}
