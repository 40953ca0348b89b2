"""
Subscription plan catalog.
"""
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from creditsub.core.errors import PlanNotFound
from creditsub.core.intervals import normalize_interval
from creditsub.db.models.subscription_plan import SubscriptionPlan, PlanStatus

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "price", "interval", "credit_amount", "features", "status")


def create_plan(
    db: Session,
    name: str,
    price: int,
    interval: Optional[str] = None,
    credit_amount: int = 0,
    description: Optional[str] = None,
    features: Optional[List[str]] = None,
) -> SubscriptionPlan:
    """
    Create a catalog plan.

    Args:
        db: Database session
        name: Display name
        price: Price in minor currency units
        interval: Billing interval in any accepted spelling
        credit_amount: Credits granted per billing period
        description: Optional description
        features: Optional feature list

    Returns:
        The new plan
    """
    plan = SubscriptionPlan(
        name=name,
        price=price,
        interval=normalize_interval(interval).value,
        credit_amount=credit_amount,
        description=description,
        features=features or [],
        status=PlanStatus.ACTIVE,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)

    logger.info(f"Plan created: plan_id={plan.id}, interval={plan.interval}, price={plan.price}")
    return plan


def list_plans(db: Session, only_active: bool = True) -> List[SubscriptionPlan]:
    query = db.query(SubscriptionPlan)
    if only_active:
        query = query.filter(SubscriptionPlan.status == PlanStatus.ACTIVE)
    return query.order_by(SubscriptionPlan.price.asc(), SubscriptionPlan.id.asc()).all()


def get_plan(db: Session, plan_id: int) -> SubscriptionPlan:
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
    if not plan:
        raise PlanNotFound(details={"plan_id": plan_id})
    return plan


def update_plan(db: Session, plan_id: int, changes: Dict[str, Any]) -> SubscriptionPlan:
    """Apply a partial update; keys set to None are left alone."""
    plan = get_plan(db, plan_id)

    for field in UPDATABLE_FIELDS:
        value = changes.get(field)
        if value is None:
            continue
        if field == "interval":
            value = normalize_interval(value).value
        setattr(plan, field, value)

    db.commit()
    db.refresh(plan)

    logger.info(f"Plan updated: plan_id={plan.id}")
    return plan


def deactivate_plan(db: Session, plan_id: int) -> SubscriptionPlan:
    """
    Remove a plan from sale.

    Plans are referenced by subscription history, so they are marked inactive
    rather than deleted. Existing subscriptions keep renewing on them.
    """
    plan = get_plan(db, plan_id)
    plan.status = PlanStatus.INACTIVE
    db.commit()
    db.refresh(plan)

    logger.info(f"Plan deactivated: plan_id={plan.id}")
    return plan
