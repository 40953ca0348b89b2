"""
Unit tests for the plan catalog, saved payment methods and credit ledger.
"""
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from creditsub.db.base import Base
from creditsub.db.models.user import User
from creditsub.db.models.subscription_plan import PlanStatus
from creditsub.db.models.payment_method import PaymentMethodStatus
from creditsub.db.models.payment import Payment, PaymentKind
from creditsub.core.errors import PlanNotFound, PaymentMethodNotFound, UserNotFound
from creditsub.services import plan_service, payment_method_service, credit_service, payment_service


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def test_user(db):
    user = User(full_name="Test User", email="test@example.com", credits=10)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_card(db, user, ref, **kwargs):
    return payment_method_service.add_payment_method(
        db,
        user_id=user.id,
        stripe_payment_method_id=ref,
        last_four_digits="4242",
        card_type="visa",
        **kwargs,
    )


# ---- plans ----

def test_create_plan_normalizes_interval(db):
    plan = plan_service.create_plan(db, name="Pro", price=1999, interval="yearly", credit_amount=100)
    assert plan.interval == "year"
    assert plan.status == PlanStatus.ACTIVE
    assert plan.features == []


def test_update_plan_is_partial(db):
    plan = plan_service.create_plan(db, name="Pro", price=1999, interval="month", credit_amount=100)

    updated = plan_service.update_plan(db, plan.id, {"price": 2499, "interval": "quarterly", "name": None})

    assert updated.price == 2499
    assert updated.interval == "quarter"
    assert updated.name == "Pro"


def test_deactivated_plan_hidden_from_catalog(db):
    keep = plan_service.create_plan(db, name="Basic", price=499)
    gone = plan_service.create_plan(db, name="Legacy", price=999)

    plan_service.deactivate_plan(db, gone.id)

    assert [p.id for p in plan_service.list_plans(db)] == [keep.id]
    assert len(plan_service.list_plans(db, only_active=False)) == 2
    assert plan_service.get_plan(db, gone.id).status == PlanStatus.INACTIVE


def test_get_missing_plan_raises(db):
    with pytest.raises(PlanNotFound):
        plan_service.get_plan(db, 12345)


# ---- payment methods ----

def test_new_card_becomes_default(db, test_user):
    first = add_card(db, test_user, "pm_1")
    second = add_card(db, test_user, "pm_2")

    default = payment_method_service.get_default_payment_method(db, test_user.id)
    assert default.id == second.id
    assert first.id != second.id


def test_add_card_without_default(db, test_user):
    first = add_card(db, test_user, "pm_1")
    add_card(db, test_user, "pm_2", make_default=False)

    assert payment_method_service.get_default_payment_method(db, test_user.id).id == first.id


def test_add_card_requires_instrument_details(db, test_user):
    with pytest.raises(ValueError):
        payment_method_service.add_payment_method(
            db, user_id=test_user.id, stripe_payment_method_id="", last_four_digits="4242", card_type="visa"
        )


def test_delete_default_card_clears_default(db, test_user):
    card = add_card(db, test_user, "pm_1")

    deleted = payment_method_service.delete_payment_method(db, card.id, test_user.id)

    assert deleted.status == PaymentMethodStatus.DELETED
    assert payment_method_service.get_default_payment_method(db, test_user.id) is None
    assert payment_method_service.list_payment_methods(db, test_user.id) == []


def test_cannot_touch_another_users_card(db, test_user):
    other = User(full_name="Other", email="other@example.com")
    db.add(other)
    db.commit()
    card = add_card(db, test_user, "pm_1")

    with pytest.raises(PaymentMethodNotFound):
        payment_method_service.delete_payment_method(db, card.id, other.id)
    with pytest.raises(PaymentMethodNotFound):
        payment_method_service.set_default_payment_method(db, card.id, other.id)


def test_set_default_switches_card(db, test_user):
    first = add_card(db, test_user, "pm_1")
    add_card(db, test_user, "pm_2")

    payment_method_service.set_default_payment_method(db, first.id, test_user.id)

    assert payment_method_service.get_default_payment_method(db, test_user.id).stripe_payment_method_id == "pm_1"


# ---- credits ----

def test_credit_ledger_add_and_set(db, test_user):
    assert credit_service.add_credits(db, test_user.id, 15) == 25
    assert credit_service.set_credits(db, test_user.id, 3) == 3
    db.commit()
    assert credit_service.get_credits(db, test_user.id) == 3


def test_credit_ledger_rejects_negative(db, test_user):
    with pytest.raises(ValueError):
        credit_service.add_credits(db, test_user.id, -1)
    with pytest.raises(ValueError):
        credit_service.set_credits(db, test_user.id, -5)


def test_credit_ledger_unknown_user(db):
    with pytest.raises(UserNotFound):
        credit_service.get_credits(db, 424242)


# ---- payment history ----

def add_payment(db, user, ref, created_at, kind=PaymentKind.PURCHASE):
    payment = Payment(
        user_id=user.id,
        stripe_payment_intent_id=ref,
        amount=1999,
        currency="usd",
        status="succeeded",
        kind=kind,
        created_at=created_at,
    )
    db.add(payment)
    db.commit()
    return payment


def test_list_payments_newest_first(db, test_user):
    add_payment(db, test_user, "pi_jan", datetime(2024, 1, 5))
    add_payment(db, test_user, "pi_feb", datetime(2024, 2, 5), kind=PaymentKind.RENEWAL)

    payments = payment_service.list_payments(db, test_user.id)

    assert [p.stripe_payment_intent_id for p in payments] == ["pi_feb", "pi_jan"]


def test_list_payments_within_window(db, test_user):
    add_payment(db, test_user, "pi_dec", datetime(2023, 12, 20))
    add_payment(db, test_user, "pi_jan", datetime(2024, 1, 15))
    add_payment(db, test_user, "pi_mar", datetime(2024, 3, 1))

    payments = payment_service.list_payments(
        db, test_user.id, begin=datetime(2024, 1, 1), end=datetime(2024, 2, 1)
    )
    since_january = payment_service.list_payments(db, test_user.id, begin=datetime(2024, 1, 1))

    assert [p.stripe_payment_intent_id for p in payments] == ["pi_jan"]
    assert [p.stripe_payment_intent_id for p in since_january] == ["pi_mar", "pi_jan"]


def test_list_payments_only_own(db, test_user):
    other = User(full_name="Other", email="other@example.com")
    db.add(other)
    db.commit()
    add_payment(db, other, "pi_other", datetime(2024, 1, 5))

    assert payment_service.list_payments(db, test_user.id) == []


def test_list_payments_rejects_inverted_window(db, test_user):
    with pytest.raises(ValueError):
        payment_service.list_payments(db, test_user.id, begin=datetime(2024, 2, 1), end=datetime(2024, 1, 1))
