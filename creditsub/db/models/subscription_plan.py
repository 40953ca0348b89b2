from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from creditsub.db.base import Base


class PlanStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"


class SubscriptionPlan(Base):
    """
    Catalog entry: what a plan costs, how often it bills and how many
    credits each period grants.
    """
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)  # minor currency units
    interval = Column(String(16), nullable=False, default="month")  # day | week | month | quarter | year
    credit_amount = Column(Integer, nullable=False, default=0)
    features = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default=PlanStatus.ACTIVE, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
