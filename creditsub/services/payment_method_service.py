"""
Saved payment methods.

A user's default card is the single ``users.default_payment_method_id``
reference, so there is never more than one default to choose from.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from creditsub.core.errors import PaymentMethodNotFound
from creditsub.db.models.user import User
from creditsub.db.models.payment_method import PaymentMethod, PaymentMethodStatus

logger = logging.getLogger(__name__)


def add_payment_method(
    db: Session,
    user_id: int,
    stripe_payment_method_id: str,
    last_four_digits: str,
    card_type: str,
    cardholder_name: Optional[str] = None,
    expiry_month: Optional[str] = None,
    expiry_year: Optional[str] = None,
    billing_address: Optional[str] = None,
    make_default: bool = True,
) -> PaymentMethod:
    """
    Save a Stripe payment method for a user.

    The newest card becomes the default unless ``make_default`` is False.
    """
    if not stripe_payment_method_id or not last_four_digits or not card_type:
        raise ValueError("Missing required payment method details")

    payment_method = PaymentMethod(
        user_id=user_id,
        stripe_payment_method_id=stripe_payment_method_id,
        last_four_digits=last_four_digits,
        card_type=card_type,
        cardholder_name=cardholder_name,
        expiry_month=expiry_month,
        expiry_year=expiry_year,
        billing_address=billing_address or "N/A",
        status=PaymentMethodStatus.ACTIVE,
    )
    db.add(payment_method)
    db.flush()

    if make_default:
        user = db.query(User).filter(User.id == user_id).first()
        user.default_payment_method_id = payment_method.id

    db.commit()
    db.refresh(payment_method)

    logger.info(f"Payment method added: user_id={user_id}, payment_method_id={payment_method.id}, default={make_default}")
    return payment_method


def list_payment_methods(db: Session, user_id: int) -> List[PaymentMethod]:
    return db.query(PaymentMethod).filter(
        PaymentMethod.user_id == user_id,
        PaymentMethod.status == PaymentMethodStatus.ACTIVE,
    ).order_by(PaymentMethod.id.asc()).all()


def _get_owned(db: Session, payment_method_id: int, user_id: int) -> PaymentMethod:
    payment_method = db.query(PaymentMethod).filter(
        PaymentMethod.id == payment_method_id,
        PaymentMethod.user_id == user_id,
        PaymentMethod.status == PaymentMethodStatus.ACTIVE,
    ).first()
    if not payment_method:
        raise PaymentMethodNotFound(details={"payment_method_id": payment_method_id})
    return payment_method


def delete_payment_method(db: Session, payment_method_id: int, user_id: int) -> PaymentMethod:
    """Soft-delete a card; clears the user's default if it pointed here."""
    payment_method = _get_owned(db, payment_method_id, user_id)
    payment_method.status = PaymentMethodStatus.DELETED

    user = db.query(User).filter(User.id == user_id).first()
    if user and user.default_payment_method_id == payment_method.id:
        user.default_payment_method_id = None

    db.commit()
    db.refresh(payment_method)

    logger.info(f"Payment method deleted: user_id={user_id}, payment_method_id={payment_method_id}")
    return payment_method


def set_default_payment_method(db: Session, payment_method_id: int, user_id: int) -> PaymentMethod:
    payment_method = _get_owned(db, payment_method_id, user_id)
    user = db.query(User).filter(User.id == user_id).first()
    user.default_payment_method_id = payment_method.id
    db.commit()
    db.refresh(payment_method)

    logger.info(f"Default payment method set: user_id={user_id}, payment_method_id={payment_method_id}")
    return payment_method


def get_default_payment_method(db: Session, user_id: int) -> Optional[PaymentMethod]:
    """Return the user's default active card, or None."""
    return db.query(PaymentMethod).join(
        User, User.default_payment_method_id == PaymentMethod.id
    ).filter(
        User.id == user_id,
        PaymentMethod.status == PaymentMethodStatus.ACTIVE,
    ).first()
