"""Unique card-number allocation."""

import secrets

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rewards.accounts.models import Account
from rewards.errors import CardNumberExhaustedError
from rewards.logging_config import get_logger
from rewards.settings import settings

logger = get_logger(__name__)

# Column -> number of digits
CARD_NUMBER_FIELDS = {
    "card_number_1": 3,
    "card_number_2": 5,
    "card_number_3": 2,
}


def _random_digits(length: int) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def allocate_card_number(
    session: Session,
    field: str,
    length: int,
    max_attempts: int | None = None,
) -> str:
    """Draw random digit strings until one is unused in ``field``.

    Args:
        session: Open database session
        field: Account column name
        length: Number of digits
        max_attempts: Retry budget (defaults to settings)

    Returns:
        A number not present in the column

    Raises:
        CardNumberExhaustedError: If every attempt collided
    """
    max_attempts = max_attempts or settings.card_number_max_attempts
    column = getattr(Account, field)

    for _ in range(max_attempts):
        candidate = _random_digits(length)
        exists = session.scalar(select(Account.id).where(column == candidate).limit(1))
        if exists is None:
            return candidate

    logger.error("card_number_exhausted", field=field, attempts=max_attempts)
    raise CardNumberExhaustedError(field, max_attempts)


def allocate_card_numbers(session: Session, account: Account, max_attempts: int | None = None) -> None:
    """Assign all three card numbers to a new account."""
    for field, length in CARD_NUMBER_FIELDS.items():
        setattr(account, field, allocate_card_number(session, field, length, max_attempts))


def colliding_card_field(error: IntegrityError) -> str | None:
    """Card-number column named by a unique-constraint violation, if any.

    Covers numbers taken by a concurrent insert after the exists check.
    """
    message = str(error.orig)
    for field in CARD_NUMBER_FIELDS:
        if field in message:
            return field
    return None
