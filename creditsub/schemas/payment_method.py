"""
Pydantic schemas for saved payment methods.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AddPaymentMethodRequest(BaseModel):
    """Card details as returned by Stripe.js; never the raw card number."""
    stripe_payment_method_id: str = Field(..., min_length=1)
    last_four_digits: str = Field(..., pattern=r"^\d{4}$")
    card_type: str = Field(..., min_length=1)
    cardholder_name: Optional[str] = None
    expiry_month: Optional[str] = Field(None, max_length=2)
    expiry_year: Optional[str] = Field(None, max_length=4)
    billing_address: Optional[str] = None
    make_default: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "stripe_payment_method_id": "pm_1Pxyz...",
                "last_four_digits": "4242",
                "card_type": "visa",
                "cardholder_name": "Ada Lovelace",
                "expiry_month": "12",
                "expiry_year": "2030"
            }
        }


class PaymentMethodResponse(BaseModel):
    id: int
    stripe_payment_method_id: str
    last_four_digits: str
    card_type: str
    cardholder_name: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    billing_address: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
