from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from creditsub.db.base import Base


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"  # superseded by a newer purchase
    CANCELLED = "CANCELLED"  # cancelled by the user
    EXPIRED = "EXPIRED"  # lapsed: renewal charge failed or no card on file


class Subscription(Base):
    """
    One purchased plan period per row. Rows are never deleted; supersession,
    cancellation and lapse are recorded through ``status``.
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=False, index=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)
    status = Column(String(16), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True)

    payment_id = Column(String, nullable=True)  # Stripe payment intent id
    amount = Column(Integer, nullable=True)  # minor currency units

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User")
    plan = relationship("SubscriptionPlan")

    # At most one ACTIVE row per user
    __table_args__ = (
        Index(
            "uq_subscriptions_one_active_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )
