"""
Pydantic schemas for subscription plan endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class PlanCreateRequest(BaseModel):
    """Request schema for creating a plan. Price is in major currency units."""
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, description="Price in major units, e.g. 9.99")
    interval: Optional[str] = Field("month", description="day, week, month, quarter or year")
    credit_amount: int = Field(0, ge=0, description="Credits granted each billing period")
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Pro",
                "price": 19.99,
                "interval": "month",
                "credit_amount": 500,
                "features": ["priority support"]
            }
        }


class PlanUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    interval: Optional[str] = None
    credit_amount: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    features: Optional[List[str]] = None
    status: Optional[str] = Field(None, pattern="^(active|inactive)$")


class PlanResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: int = Field(..., description="Price in minor units")
    interval: str
    credit_amount: int
    features: List[str] = Field(default_factory=list)
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
