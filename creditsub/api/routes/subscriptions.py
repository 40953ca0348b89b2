"""
Subscription endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from creditsub.core.auth_dependency import (
    get_db,
    get_current_user_obj,
    get_subscription_service,
    get_renewal_scheduler,
)
from creditsub.db.models.user import User
from creditsub.schemas.subscription import SubscriptionResponse, RenewalReportResponse
from creditsub.services.renewal_service import RenewalScheduler
from creditsub.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


# ✅ CURRENT ACTIVE SUBSCRIPTION (null when none)
@router.get("/active")
def get_active_subscription(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.get_active(db, user.id)
    data = SubscriptionResponse.model_validate(subscription) if subscription else None
    return {"success": True, "data": data}


@router.get("/me")
def list_my_subscriptions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscriptions = service.list_for_user(db, user.id)
    return {"success": True, "data": [SubscriptionResponse.model_validate(s) for s in subscriptions]}


# Admin listing across users; authorization policy is enforced outside this service
@router.get("")
def list_all_subscriptions(
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscriptions = service.list_all(db, user_id=user_id, status=status)
    return {"success": True, "data": [SubscriptionResponse.model_validate(s) for s in subscriptions]}


@router.post("/{subscription_id}/cancel")
def cancel_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.cancel(db, subscription_id, user.id)
    return {
        "success": True,
        "message": "Subscription cancelled successfully",
        "data": SubscriptionResponse.model_validate(subscription),
    }


# ✅ RUN ONE RENEWAL SWEEP NOW (cron / ops hook)
# Admin hook, restrict it at the gateway or proxy.
# May overlap the timed sweep; each row is re-checked under lock before charging.
@router.post("/renewals/run")
def run_renewal_sweep(
    user: User = Depends(get_current_user_obj),
    scheduler: RenewalScheduler = Depends(get_renewal_scheduler),
):
    report = scheduler.sweep()
    return {"success": True, "data": RenewalReportResponse(**report.as_dict())}
