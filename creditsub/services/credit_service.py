"""
Credit ledger.

Reads and writes a user's credit balance. These helpers never commit; the
calling service owns the transaction so credit and subscription changes land
together.
"""
import logging
from sqlalchemy.orm import Session

from creditsub.core.errors import UserNotFound
from creditsub.db.models.user import User

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: int, lock: bool = False) -> User:
    query = db.query(User).filter(User.id == user_id)
    if lock:
        query = query.with_for_update()
    user = query.first()
    if not user:
        raise UserNotFound(details={"user_id": user_id})
    return user


def get_credits(db: Session, user_id: int) -> int:
    return _get_user(db, user_id).credits or 0


def add_credits(db: Session, user_id: int, amount: int) -> int:
    """
    Increase a user's balance.

    Args:
        db: Database session
        user_id: User ID
        amount: Credits to add, must be >= 0

    Returns:
        New balance
    """
    if amount < 0:
        raise ValueError("Credit increments cannot be negative")
    user = _get_user(db, user_id, lock=True)
    user.credits = (user.credits or 0) + amount
    logger.debug(f"Credits added: user_id={user_id}, amount={amount}, balance={user.credits}")
    return user.credits


def set_credits(db: Session, user_id: int, value: int) -> int:
    """Overwrite a user's balance with an absolute value."""
    if value < 0:
        raise ValueError("Credit balance cannot be negative")
    user = _get_user(db, user_id, lock=True)
    user.credits = value
    logger.debug(f"Credits set: user_id={user_id}, balance={value}")
    return value
