from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from creditsub.db.base import Base


class PaymentMethodStatus:
    ACTIVE = "active"
    DELETED = "deleted"


class PaymentMethod(Base):
    """
    Saved card reference. Only the Stripe payment method id and display
    details are kept; card numbers and CVCs never reach this table.
    """
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    stripe_payment_method_id = Column(String, nullable=False)

    cardholder_name = Column(String, nullable=True)
    last_four_digits = Column(String(4), nullable=False)
    card_type = Column(String, nullable=False)
    expiry_month = Column(String(2), nullable=True)
    expiry_year = Column(String(4), nullable=True)
    billing_address = Column(String, nullable=True)

    status = Column(String(16), nullable=False, default=PaymentMethodStatus.ACTIVE, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
