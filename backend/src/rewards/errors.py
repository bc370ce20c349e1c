"""Application error types.

Services raise these; the API layer renders them as
``{"success": false, "message": ...}`` with the carried status code.
"""


class AppError(Exception):
    """Base application error carrying an HTTP status code."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400


class ConflictError(AppError):
    """Duplicate resource (e.g. email already registered)."""

    status_code = 400


class AuthenticationError(AppError):
    """Bad credentials or missing session."""

    status_code = 401


class ForbiddenError(AppError):
    """Authenticated but not allowed."""

    status_code = 403


class NotFoundError(AppError):
    """Account, feedback, referral code or withdrawal not found."""

    status_code = 404


class MailDeliveryError(AppError):
    """Mail transport rejected or failed to deliver a message."""

    status_code = 500


class CardNumberExhaustedError(AppError):
    """No free card number found within the retry budget."""

    status_code = 500

    def __init__(self, field: str, attempts: int):
        self.field = field
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique {field} after {attempts} attempts")
