"""Authentication dependencies for FastAPI."""

from fastapi import Depends, Request

from rewards.accounts.models import Account, Role
from rewards.auth.local import auth_service
from rewards.errors import AuthenticationError, ForbiddenError
from rewards.logging_config import get_logger
from rewards.settings import settings

logger = get_logger(__name__)


async def get_current_user(request: Request) -> Account | None:
    """Get the account bound to the session cookie, if any."""
    token = request.cookies.get(settings.cookie_name)
    if not token:
        return None

    account = auth_service.get_account_from_token(token)
    if account:
        request.state.user = account
    return account


def require_auth(user: Account | None = Depends(get_current_user)) -> Account:
    """Require authentication.

    Raises:
        AuthenticationError: 401 if no valid session cookie
    """
    if not user:
        raise AuthenticationError("Please login to access this page.")
    return user


def require_admin(user: Account = Depends(require_auth)) -> Account:
    """Require admin role.

    Raises:
        ForbiddenError: 403 if not admin
    """
    if user.role != Role.ADMIN:
        logger.warning("admin_access_denied", account_id=user.id)
        raise ForbiddenError("Admin access required")
    return user
