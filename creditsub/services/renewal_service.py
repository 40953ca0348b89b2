"""
Subscription renewal sweep.

Runs on a timer. It finds ACTIVE subscriptions that lapse within the renewal
horizon and charges each user's default card off-session. If the charge
succeeds, the period rolls forward and credits reset to the plan's grant. If
there is no card, the subscription expires. If the charge fails or errors, the
subscription expires and credits drop to zero.

Each subscription gets its own transaction. A failure on one subscription is
logged and the sweep carries on with the next.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from creditsub.core.config import RENEWAL_HORIZON_HOURS, STRIPE_CURRENCY
from creditsub.core.intervals import add_interval, utcnow
from creditsub.db.models.payment import Payment, PaymentKind
from creditsub.db.models.subscription import Subscription, SubscriptionStatus
from creditsub.db.models.user import User
from creditsub.services import credit_service
from creditsub.services.payment_method_service import get_default_payment_method
from creditsub.services.stripe_service import ChargeGateway

logger = logging.getLogger(__name__)


@dataclass
class RenewalReport:
    selected: int = 0
    renewed: List[int] = field(default_factory=list)
    expired: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "selected": self.selected,
            "renewed": self.renewed,
            "expired": self.expired,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class RenewalScheduler:
    """
    Drives automatic renewals.

    Args:
        session_factory: Creates database sessions (``SessionLocal``)
        gateway: Charge gateway for off-session charges
        clock: Returns "now" as naive UTC
        horizon: How far ahead of lapse a subscription is renewed
        currency: Currency for renewal charges
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        gateway: ChargeGateway,
        clock: Callable[[], datetime] = utcnow,
        horizon: timedelta = timedelta(hours=RENEWAL_HORIZON_HOURS),
        currency: str = STRIPE_CURRENCY,
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.clock = clock
        self.horizon = horizon
        self.currency = currency

    def select_due(self, db: Session, now: datetime) -> List[int]:
        """Ids of ACTIVE subscriptions ending in (now, now + horizon]."""
        rows = db.query(Subscription.id).filter(
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Subscription.end_date > now,
            Subscription.end_date <= now + self.horizon,
        ).order_by(Subscription.end_date.asc()).all()
        return [row.id for row in rows]

    def _is_due(self, subscription: Subscription, now: datetime) -> bool:
        return (
            subscription.status == SubscriptionStatus.ACTIVE.value
            and now < subscription.end_date <= now + self.horizon
        )

    def sweep(self) -> RenewalReport:
        """
        Run one renewal pass.

        Never raises: a failing selection query aborts the pass with an empty
        report, and per-subscription failures are recorded in ``failed``.
        """
        report = RenewalReport()
        now = self.clock()

        try:
            db = self.session_factory()
            try:
                due = self.select_due(db, now)
            finally:
                db.close()
        except Exception:
            logger.exception("Renewal sweep aborted: could not select expiring subscriptions")
            return report

        report.selected = len(due)
        logger.info(f"Renewal sweep started: due={len(due)}, horizon={self.horizon}")

        for subscription_id in due:
            try:
                outcome = self._process(subscription_id, now)
            except Exception:
                logger.exception(f"Renewal failed and could not expire subscription: subscription_id={subscription_id}")
                report.failed.append(subscription_id)
                continue

            if outcome is None:
                report.skipped.append(subscription_id)
            elif outcome == SubscriptionStatus.ACTIVE:
                report.renewed.append(subscription_id)
            else:
                report.expired.append(subscription_id)

        logger.info(
            f"Renewal sweep finished: renewed={len(report.renewed)}, "
            f"expired={len(report.expired)}, failed={len(report.failed)}"
        )
        return report

    def _process(self, subscription_id: int, now: datetime) -> Optional[SubscriptionStatus]:
        db = self.session_factory()
        try:
            return self._renew_one(db, subscription_id, now)
        finally:
            db.close()

    def _renew_one(self, db: Session, subscription_id: int, now: datetime) -> Optional[SubscriptionStatus]:
        subscription = db.query(Subscription).filter(
            Subscription.id == subscription_id
        ).with_for_update().first()
        # Cancelled, superseded or already renewed by an overlapping sweep since selection
        if not subscription or not self._is_due(subscription, now):
            return None
        user_id = subscription.user_id

        payment_method = get_default_payment_method(db, user_id)
        if not payment_method:
            subscription.status = SubscriptionStatus.EXPIRED.value
            subscription.end_date = now
            db.commit()
            logger.warning(f"Subscription expired, no default payment method: user_id={user_id}, subscription_id={subscription_id}")
            return SubscriptionStatus.EXPIRED

        try:
            plan = subscription.plan
            customer_id = db.query(User.stripe_customer_id).filter(User.id == user_id).scalar()
            intent = self.gateway.charge_off_session(
                payment_method.stripe_payment_method_id,
                plan.price,
                self.currency,
                customer_id=customer_id,
            )

            if intent.succeeded:
                credit_service.set_credits(db, user_id, plan.credit_amount)
                subscription.start_date = now
                subscription.end_date = add_interval(now, plan.interval)
                subscription.status = SubscriptionStatus.ACTIVE.value
                subscription.payment_id = intent.id
                subscription.amount = intent.amount
                db.add(Payment(
                    user_id=user_id,
                    subscription_id=subscription.id,
                    stripe_payment_intent_id=intent.id,
                    amount=intent.amount,
                    currency=intent.currency,
                    status=intent.status,
                    kind=PaymentKind.RENEWAL,
                ))
                db.commit()
                logger.info(f"Subscription renewed: user_id={user_id}, subscription_id={subscription_id}, end_date={subscription.end_date}")
                return SubscriptionStatus.ACTIVE

            logger.warning(f"Renewal charge not successful: user_id={user_id}, subscription_id={subscription_id}, status={intent.status}")
        except Exception:
            db.rollback()
            logger.exception(f"Renewal charge errored: user_id={user_id}, subscription_id={subscription_id}")

        self._expire(db, subscription_id, user_id, now)
        return SubscriptionStatus.EXPIRED

    def _expire(self, db: Session, subscription_id: int, user_id: int, now: datetime) -> None:
        subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
        subscription.status = SubscriptionStatus.EXPIRED.value
        subscription.end_date = now
        db.flush()
        credit_service.set_credits(db, user_id, 0)
        db.commit()
        logger.warning(f"Subscription expired, credits reset: user_id={user_id}, subscription_id={subscription_id}")

    async def run_forever(self, interval_seconds: int) -> None:
        """
        Sweep every ``interval_seconds`` until cancelled.

        Sweeps run in a worker thread. A sweep that has started finishes even
        if the loop is cancelled meanwhile.
        """
        logger.info(f"Renewal scheduler started, sweeping every {interval_seconds}s")
        try:
            while True:
                await asyncio.shield(asyncio.to_thread(self.sweep))
                await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("Renewal scheduler stopped")
            raise
