"""Email service using the SendGrid HTTP API."""

import httpx

from rewards.errors import MailDeliveryError
from rewards.logging_config import get_logger
from rewards.settings import settings

logger = get_logger(__name__)

OTP_STYLE = "font-size: 32px; font-weight: bold; color: #4CAF50;"


class EmailService:
    """Transactional mail.

    Handles:
    - Signup verification OTP
    - Password reset OTP
    - Eligibility status updates
    - Payment proof upload notices (user and admin)
    """

    SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self):
        """Initialize email service."""
        self.api_key = settings.sendgrid_api_key
        self.from_email = settings.sendgrid_from_email
        self.from_name = settings.sendgrid_from_name
        self.enabled = bool(self.api_key)

        if not self.enabled:
            logger.warning("email_service_disabled", reason="SENDGRID_API_KEY not set")

    async def _send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send an email via SendGrid API.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML body

        Returns:
            True if sent, False if the service is disabled

        Raises:
            MailDeliveryError: If SendGrid rejects the message or is unreachable
        """
        if not self.enabled:
            logger.warning("email_not_sent", reason="service_disabled", to=to_email, subject=subject)
            return False

        payload = {
            "personalizations": [
                {
                    "to": [{"email": to_email}],
                    "subject": subject,
                }
            ],
            "from": {
                "email": self.from_email,
                "name": self.from_name,
            },
            "content": [
                {"type": "text/html", "value": html_content},
            ],
        }

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.SENDGRID_API_URL,
                    json=payload,
                    headers=headers,
                    timeout=30.0,
                )
        except httpx.RequestError as e:
            logger.error("email_send_error", to=to_email, error=str(e))
            raise MailDeliveryError("Failed to send mail") from e

        if response.status_code not in (200, 201, 202):
            logger.error(
                "email_send_failed",
                to=to_email,
                status=response.status_code,
                body=response.text[:200],
            )
            raise MailDeliveryError("Failed to send mail")

        logger.info("email_sent", to=to_email, subject=subject)
        return True

    async def send_verification_otp(self, to_email: str, user_name: str, otp: str) -> bool:
        """Send the signup verification code."""
        subject = f"Verify Your Email - {self.from_name}"
        html_content = f"""
        <p>Hello <strong>{user_name}</strong>,</p>
        <p>Thank you for signing up! To complete your registration, please verify your email.</p>
        <p>Your OTP for verification is:</p>
        <h3 style="{OTP_STYLE}">{otp}</h3>
        <p>This code is valid for {settings.otp_expire_minutes} minutes.</p>
        <p>If you did not request this, please ignore this email.</p>
        <p>Best regards,<br/>The {self.from_name} Team</p>
        """
        return await self._send_email(to_email, subject, html_content)

    async def send_password_reset_otp(self, to_email: str, user_name: str, otp: str) -> bool:
        """Send the password reset code."""
        subject = "OTP for Password Reset"
        html_content = f"""
        <p>Hello <strong>{user_name}</strong>,</p>
        <p>We received a request to reset your password. To proceed, please use the OTP below:</p>
        <h3 style="{OTP_STYLE}">{otp}</h3>
        <p>This OTP is valid for {settings.otp_expire_minutes} minutes. If you did not request a
        password reset, please ignore this email or contact our support team immediately.</p>
        <p>Best regards,<br/>The {self.from_name} Team</p>
        """
        return await self._send_email(to_email, subject, html_content)

    async def send_eligibility_update(self, to_email: str, user_name: str, status: str) -> bool:
        """Tell a user their eligibility status changed."""
        subject = "Update on Your Eligibility Status"
        html_content = f"""
        <p>Dear <strong>{user_name}</strong></p>
        <p>Your eligibility status has been updated to: <strong>{status}</strong></p>
        <p>Contact support for any questions.</p>
        <p>Best regards,<br/>The {self.from_name} Team</p>
        """
        return await self._send_email(to_email, subject, html_content)

    async def send_payment_image_received(self, to_email: str) -> bool:
        """Confirm a payment proof upload to the user."""
        return await self._send_email(
            to_email,
            "Image Uploaded",
            "<p>Your image has been uploaded successfully and is under review.</p>",
        )

    async def send_payment_image_admin_notice(
        self,
        admin_email: str,
        user_name: str,
        user_email: str,
        image_path: str,
    ) -> bool:
        """Notify the admin address about a new payment proof."""
        html_content = f"""
        <h2>User Image Upload</h2>
        <p><strong>Name:</strong> {user_name}</p>
        <p><strong>Email:</strong> {user_email}</p>
        <p><strong>Uploaded Image:</strong> {image_path}</p>
        """
        return await self._send_email(admin_email, "New Image Uploaded", html_content)


# Singleton instance
email_service = EmailService()
