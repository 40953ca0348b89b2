"""
Pydantic schemas for subscriptions.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from creditsub.schemas.plan import PlanResponse


class SubscriptionResponse(BaseModel):
    id: int
    user_id: int
    plan_id: int
    start_date: datetime
    end_date: datetime
    status: str
    payment_id: Optional[str] = None
    amount: Optional[int] = None
    plan: Optional[PlanResponse] = None

    class Config:
        from_attributes = True


class RenewalReportResponse(BaseModel):
    selected: int
    renewed: List[int]
    expired: List[int]
    failed: List[int]
    skipped: List[int]
