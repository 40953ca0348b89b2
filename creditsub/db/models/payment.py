from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from creditsub.db.base import Base


class PaymentKind:
    PURCHASE = "purchase"
    RENEWAL = "renewal"


class Payment(Base):
    """
    Ledger of successful charges.

    The unique payment intent id stops one confirmed intent from being
    credited twice.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=True, index=True)
    stripe_payment_intent_id = Column(String, nullable=False, unique=True)
    amount = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False, default="usd")
    status = Column(String(32), nullable=False, default="succeeded")
    kind = Column(String(16), nullable=False, default=PaymentKind.PURCHASE)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
