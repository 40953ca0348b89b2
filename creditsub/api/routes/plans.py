"""
Subscription plan catalog endpoints.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from creditsub.core.auth_dependency import get_db, get_current_user_obj
from creditsub.db.models.user import User
from creditsub.schemas.plan import PlanCreateRequest, PlanUpdateRequest, PlanResponse
from creditsub.services import plan_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["Plans"])


def _to_minor_units(price: float) -> int:
    return int(round(price * 100))


# ✅ LIST PLANS ON SALE
@router.get("")
def list_plans(include_inactive: bool = False, db: Session = Depends(get_db)):
    plans = plan_service.list_plans(db, only_active=not include_inactive)
    return {"success": True, "data": [PlanResponse.model_validate(p) for p in plans]}


@router.get("/{plan_id}")
def get_plan(plan_id: int, db: Session = Depends(get_db)):
    plan = plan_service.get_plan(db, plan_id)
    return {"success": True, "data": PlanResponse.model_validate(plan)}


# ✅ CREATE PLAN
@router.post("", status_code=status.HTTP_201_CREATED)
def create_plan(
    body: PlanCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    plan = plan_service.create_plan(
        db,
        name=body.name,
        price=_to_minor_units(body.price),
        interval=body.interval,
        credit_amount=body.credit_amount,
        description=body.description,
        features=body.features,
    )
    return {"success": True, "data": PlanResponse.model_validate(plan)}


@router.patch("/{plan_id}")
def update_plan(
    plan_id: int,
    body: PlanUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    changes = body.model_dump(exclude_unset=True)
    if changes.get("price") is not None:
        changes["price"] = _to_minor_units(changes["price"])
    plan = plan_service.update_plan(db, plan_id, changes)
    return {"success": True, "data": PlanResponse.model_validate(plan)}


@router.delete("/{plan_id}")
def delete_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    plan = plan_service.deactivate_plan(db, plan_id)
    return {
        "success": True,
        "message": "Subscription plan deactivated successfully",
        "data": PlanResponse.model_validate(plan),
    }
