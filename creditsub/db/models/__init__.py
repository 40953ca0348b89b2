"""
Database models module.

Imports every model so they are registered with SQLAlchemy's Base.metadata
before table creation and Alembic autogeneration.
"""
from creditsub.db.models.user import User
from creditsub.db.models.subscription_plan import SubscriptionPlan, PlanStatus
from creditsub.db.models.payment_method import PaymentMethod, PaymentMethodStatus
from creditsub.db.models.subscription import Subscription, SubscriptionStatus
from creditsub.db.models.payment import Payment, PaymentKind

__all__ = [
    "User",
    "SubscriptionPlan",
    "PlanStatus",
    "PaymentMethod",
    "PaymentMethodStatus",
    "Subscription",
    "SubscriptionStatus",
    "Payment",
    "PaymentKind",
]
