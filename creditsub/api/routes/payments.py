"""
Payment endpoints: create a Stripe payment intent for the client to confirm,
then apply the completed payment. Also lists the caller's payment history.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creditsub.core.auth_dependency import get_db, get_current_user_obj, get_gateway
from creditsub.db.models.user import User
from creditsub.schemas.payment import (
    CreateIntentRequest,
    CreateIntentResponse,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    PaymentResponse,
)
from creditsub.schemas.subscription import SubscriptionResponse
from creditsub.services import payment_service
from creditsub.services.stripe_service import ChargeGateway
from creditsub.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/intents")
def create_payment_intent(
    body: CreateIntentRequest,
    user: User = Depends(get_current_user_obj),
    gateway: ChargeGateway = Depends(get_gateway),
):
    """Create a payment intent; the client confirms it with the returned secret."""
    intent = gateway.create_intent(body.amount, body.currency)
    logger.info(f"Payment intent requested: user_id={user.id}, intent_id={intent.id}")
    return {
        "success": True,
        "data": CreateIntentResponse(payment_intent_id=intent.id, client_secret=intent.client_secret),
    }


@router.post("/confirm")
def confirm_payment(
    body: ConfirmPaymentRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
    gateway: ChargeGateway = Depends(get_gateway),
):
    """
    Apply a succeeded payment intent: grant credits and, with ``plan_id``,
    activate the plan as the user's subscription.
    """
    service = SubscriptionService(gateway)
    result = service.confirm_purchase(
        db,
        user_id=user.id,
        charge_reference=body.payment_intent_id,
        credit_amount=body.credit_amount,
        plan_id=body.plan_id,
    )

    subscription = SubscriptionResponse.model_validate(result.subscription) if result.subscription else None
    return {
        "success": True,
        "data": ConfirmPaymentResponse(
            id=result.payment.stripe_payment_intent_id,
            amount=result.payment.amount,
            currency=result.payment.currency,
            status=result.payment.status,
            credited_amount=result.credited_amount,
            credits=result.credits,
            subscription=subscription,
        ),
    }


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ✅ PAYMENT HISTORY (optionally within a time window)
@router.get("")
def list_payments(
    begin_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    try:
        payments = payment_service.list_payments(
            db,
            user.id,
            begin=_as_naive_utc(begin_time),
            end=_as_naive_utc(end_time),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"success": True, "data": [PaymentResponse.model_validate(p) for p in payments]}
