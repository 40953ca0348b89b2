"""
Payment history.

Read side of the payments ledger written by purchase confirmations and
renewals.
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from creditsub.db.models.payment import Payment

logger = logging.getLogger(__name__)


def list_payments(
    db: Session,
    user_id: int,
    begin: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Payment]:
    """
    List a user's payments, newest first.

    Args:
        db: Database session
        user_id: User ID
        begin: Only payments created at or after this time
        end: Only payments created at or before this time

    Returns:
        Matching payments
    """
    if begin and end and begin > end:
        raise ValueError("begin_time must not be after end_time")

    query = db.query(Payment).filter(Payment.user_id == user_id)
    if begin is not None:
        query = query.filter(Payment.created_at >= begin)
    if end is not None:
        query = query.filter(Payment.created_at <= end)

    payments = query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()
    logger.debug(f"Payments listed: user_id={user_id}, count={len(payments)}")
    return payments
