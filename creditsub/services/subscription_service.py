"""
Subscription lifecycle.

Confirms paid purchases (credit grant plus optional plan activation), cancels
subscriptions and answers "what is this user subscribed to". Every operation
runs in a single transaction: it either commits completely or rolls back and
raises a BillingError.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from creditsub.core.errors import (
    BillingError,
    PaymentNotCompleted,
    PaymentAlreadyApplied,
    PlanNotFound,
    SubscriptionNotFound,
    AlreadyCancelled,
    PersistenceFailure,
)
from creditsub.core.intervals import add_interval, utcnow
from creditsub.db.models.payment import Payment, PaymentKind
from creditsub.db.models.subscription import Subscription, SubscriptionStatus
from creditsub.db.models.subscription_plan import SubscriptionPlan
from creditsub.services import credit_service
from creditsub.services.stripe_service import ChargeGateway

logger = logging.getLogger(__name__)


@dataclass
class PurchaseResult:
    credited_amount: int
    credits: int
    payment: Payment
    subscription: Optional[Subscription] = None


def _coerce_credit_amount(value) -> int:
    """Absent, malformed or negative grants count as zero."""
    try:
        amount = int(value)
    except (TypeError, ValueError):
        return 0
    return max(amount, 0)


class SubscriptionService:
    """
    Lifecycle engine for subscriptions.

    Args:
        gateway: Charge gateway used to verify payment intents
        clock: Returns "now" as naive UTC; injectable for tests
    """

    def __init__(self, gateway: Optional[ChargeGateway], clock: Callable[[], datetime] = utcnow):
        self.gateway = gateway
        self.clock = clock

    def confirm_purchase(
        self,
        db: Session,
        user_id: int,
        charge_reference: str,
        credit_amount=None,
        plan_id: Optional[int] = None,
    ) -> PurchaseResult:
        """
        Apply a payment the client has completed with Stripe.

        Credits are granted, and when ``plan_id`` is given the plan becomes the
        user's single ACTIVE subscription (any previous one is demoted to
        INACTIVE). Nothing is written unless the intent has succeeded.

        Raises:
            GatewayFailure: The intent could not be retrieved
            PaymentNotCompleted: The intent is not in a succeeded state
            PaymentAlreadyApplied: The intent was confirmed before
            PlanNotFound: ``plan_id`` does not exist
            UserNotFound: ``user_id`` does not exist
            PersistenceFailure: Storage error (retryable on conflicts)
        """
        intent = self.gateway.retrieve_intent(charge_reference)
        if not intent.succeeded:
            logger.info(f"Confirmation rejected: user_id={user_id}, intent_id={charge_reference}, status={intent.status}")
            raise PaymentNotCompleted(details={"status": intent.status})

        credited = _coerce_credit_amount(credit_amount)
        now = self.clock()

        try:
            already_applied = db.query(Payment.id).filter(
                Payment.stripe_payment_intent_id == intent.id
            ).first()
            if already_applied:
                raise PaymentAlreadyApplied(details={"payment_intent_id": intent.id})

            balance = credit_service.add_credits(db, user_id, credited)

            payment = Payment(
                user_id=user_id,
                stripe_payment_intent_id=intent.id,
                amount=intent.amount,
                currency=intent.currency,
                status=intent.status,
                kind=PaymentKind.PURCHASE,
            )
            db.add(payment)

            subscription = None
            if plan_id is not None:
                subscription = self._activate_plan(db, user_id, plan_id, intent.id, intent.amount, now)
                payment.subscription_id = subscription.id

            db.commit()
        except BillingError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Concurrent confirmation conflict: user_id={user_id}, intent_id={intent.id}: {e}")
            raise PersistenceFailure("Conflicting subscription update, retry the confirmation", retryable=True)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Confirmation failed: user_id={user_id}, intent_id={intent.id}")
            raise PersistenceFailure() from e

        if subscription is not None:
            db.refresh(subscription)
        logger.info(
            f"Purchase confirmed: user_id={user_id}, intent_id={intent.id}, credited={credited}, "
            f"subscription_id={subscription.id if subscription else None}"
        )
        return PurchaseResult(credited_amount=credited, credits=balance, payment=payment, subscription=subscription)

    def _activate_plan(
        self,
        db: Session,
        user_id: int,
        plan_id: int,
        payment_id: str,
        amount: int,
        now: datetime,
    ) -> Subscription:
        plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
        if not plan:
            raise PlanNotFound(details={"plan_id": plan_id})

        current = db.query(Subscription).filter(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        ).with_for_update().first()

        if current:
            current.status = SubscriptionStatus.INACTIVE.value
            # Demotion must reach the database before the new ACTIVE insert
            db.flush()
            logger.info(f"Subscription superseded: user_id={user_id}, subscription_id={current.id}")

        subscription = Subscription(
            user_id=user_id,
            plan_id=plan.id,
            start_date=now,
            end_date=add_interval(now, plan.interval),
            status=SubscriptionStatus.ACTIVE.value,
            payment_id=payment_id,
            amount=amount,
        )
        db.add(subscription)
        db.flush()
        return subscription

    def cancel(self, db: Session, subscription_id: int, user_id: int) -> Subscription:
        """
        Cancel a user's subscription immediately.

        Cancelling twice is an error rather than a no-op.

        Raises:
            SubscriptionNotFound: No such subscription for this user
            AlreadyCancelled: The subscription is already CANCELLED
        """
        subscription = db.query(Subscription).filter(
            Subscription.id == subscription_id,
            Subscription.user_id == user_id,
        ).first()

        if not subscription:
            raise SubscriptionNotFound(details={"subscription_id": subscription_id})

        if subscription.status == SubscriptionStatus.CANCELLED.value:
            raise AlreadyCancelled(details={"subscription_id": subscription_id})

        subscription.status = SubscriptionStatus.CANCELLED.value
        subscription.end_date = self.clock()

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Cancel failed: subscription_id={subscription_id}")
            raise PersistenceFailure() from e

        db.refresh(subscription)
        logger.info(f"Subscription cancelled: user_id={user_id}, subscription_id={subscription_id}")
        return subscription

    def get_active(self, db: Session, user_id: int) -> Optional[Subscription]:
        """Return the user's ACTIVE subscription with its plan, or None."""
        return db.query(Subscription).options(
            joinedload(Subscription.plan)
        ).filter(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        ).first()

    def list_all(
        self,
        db: Session,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Subscription]:
        """All subscriptions, newest first, optionally filtered."""
        query = db.query(Subscription).options(joinedload(Subscription.plan))
        if user_id is not None:
            query = query.filter(Subscription.user_id == user_id)
        if status:
            query = query.filter(Subscription.status == status.upper())
        return query.order_by(Subscription.created_at.desc(), Subscription.id.desc()).all()

    def list_for_user(self, db: Session, user_id: int) -> List[Subscription]:
        return self.list_all(db, user_id=user_id)
