"""
Saved payment method endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creditsub.core.auth_dependency import get_db, get_current_user_obj
from creditsub.db.models.user import User
from creditsub.db.models.payment_method import PaymentMethod
from creditsub.schemas.payment_method import AddPaymentMethodRequest, PaymentMethodResponse
from creditsub.services import payment_method_service

router = APIRouter(prefix="/payment-methods", tags=["Payment Methods"])


def _serialize(payment_method: PaymentMethod, user: User) -> PaymentMethodResponse:
    data = PaymentMethodResponse.model_validate(payment_method)
    data.is_default = user.default_payment_method_id == payment_method.id
    return data


@router.get("")
def list_payment_methods(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    methods = payment_method_service.list_payment_methods(db, user.id)
    return {"success": True, "data": [_serialize(m, user) for m in methods]}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_payment_method(
    body: AddPaymentMethodRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    try:
        payment_method = payment_method_service.add_payment_method(
            db,
            user_id=user.id,
            **body.model_dump(),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    db.refresh(user)
    return {"success": True, "data": _serialize(payment_method, user)}


@router.post("/{payment_method_id}/default")
def set_default_payment_method(
    payment_method_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    payment_method = payment_method_service.set_default_payment_method(db, payment_method_id, user.id)
    db.refresh(user)
    return {"success": True, "data": _serialize(payment_method, user)}


@router.delete("/{payment_method_id}")
def delete_payment_method(
    payment_method_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user_obj),
):
    payment_method_service.delete_payment_method(db, payment_method_id, user.id)
    return {"success": True, "message": "Payment method deleted successfully"}
