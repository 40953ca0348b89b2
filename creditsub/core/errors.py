"""
Billing error kinds.

Services raise these; the API layer renders them through a single exception
handler so callers can branch on ``error_code`` instead of parsing messages.
"""
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(Enum):
    """Error codes surfaced to API callers."""

    PAYMENT_NOT_COMPLETED = "PAYMENT_NOT_COMPLETED"
    PAYMENT_ALREADY_APPLIED = "PAYMENT_ALREADY_APPLIED"
    PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
    SUBSCRIPTION_NOT_FOUND = "SUBSCRIPTION_NOT_FOUND"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    PAYMENT_METHOD_NOT_FOUND = "PAYMENT_METHOD_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GATEWAY_FAILURE = "GATEWAY_FAILURE"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


class ErrorResponse(BaseModel):
    """Error body returned for every billing error."""

    success: bool = False
    error_code: str
    message: str
    retryable: bool = False
    details: Optional[Dict[str, Any]] = None


class BillingError(Exception):
    code = ErrorCode.PERSISTENCE_FAILURE
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Billing operation failed"

    def __init__(self, message: Optional[str] = None, *, retryable: bool = False, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.retryable = retryable
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.code.value,
            message=self.message,
            retryable=self.retryable,
            details=self.details,
        )


class PaymentNotCompleted(BillingError):
    """The charge intent is not in a succeeded state."""
    code = ErrorCode.PAYMENT_NOT_COMPLETED
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Payment not completed successfully."


class PaymentAlreadyApplied(BillingError):
    """The charge intent was already confirmed once."""
    code = ErrorCode.PAYMENT_ALREADY_APPLIED
    http_status = status.HTTP_409_CONFLICT
    default_message = "Payment has already been applied."


class PlanNotFound(BillingError):
    code = ErrorCode.PLAN_NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Subscription plan not found"


class SubscriptionNotFound(BillingError):
    """No subscription with that id, or it belongs to another user."""
    code = ErrorCode.SUBSCRIPTION_NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Subscription not found or does not belong to the user"


class AlreadyCancelled(BillingError):
    code = ErrorCode.ALREADY_CANCELLED
    http_status = status.HTTP_409_CONFLICT
    default_message = "Subscription is already cancelled"


class PaymentMethodNotFound(BillingError):
    code = ErrorCode.PAYMENT_METHOD_NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Payment method not found"


class UserNotFound(BillingError):
    code = ErrorCode.USER_NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class GatewayFailure(BillingError):
    """The charge gateway errored or timed out."""
    code = ErrorCode.GATEWAY_FAILURE
    http_status = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment gateway request failed"


class PersistenceFailure(BillingError):
    """Storage error. ``retryable`` is set for concurrent-write conflicts."""
    code = ErrorCode.PERSISTENCE_FAILURE
    default_message = "Could not save billing changes"

    def __init__(self, message: Optional[str] = None, *, retryable: bool = False, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, retryable=retryable, details=details)
        if retryable:
            self.http_status = status.HTTP_409_CONFLICT


async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_response().model_dump(),
    )
