"""
Pydantic schemas for payment intents and purchase confirmation.
"""
from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, Field

from creditsub.schemas.subscription import SubscriptionResponse


class CreateIntentRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in minor currency units")
    currency: Optional[str] = Field(None, description="Defaults to STRIPE_CURRENCY")


class CreateIntentResponse(BaseModel):
    payment_intent_id: str
    client_secret: str


class ConfirmPaymentRequest(BaseModel):
    """
    Confirm a payment the client completed with Stripe.js.

    A malformed or negative ``credit_amount`` grants no credits.
    """
    payment_intent_id: str = Field(..., min_length=1)
    credit_amount: Optional[Union[int, str]] = None
    plan_id: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "payment_intent_id": "pi_3Pxyz...",
                "credit_amount": 500,
                "plan_id": 2
            }
        }


class ConfirmPaymentResponse(BaseModel):
    id: str
    amount: int
    currency: str
    status: str
    credited_amount: int
    credits: int
    subscription: Optional[SubscriptionResponse] = None


class PaymentResponse(BaseModel):
    id: int
    stripe_payment_intent_id: str
    subscription_id: Optional[int] = None
    amount: int
    currency: str
    status: str
    kind: str
    created_at: datetime

    class Config:
        from_attributes = True
