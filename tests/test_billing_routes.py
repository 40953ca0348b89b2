"""
Integration tests for payment, subscription and payment method endpoints.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from creditsub.main import app
from creditsub.db.base import Base
from creditsub.db.models.user import User
from creditsub.db.models.subscription_plan import SubscriptionPlan
from creditsub.db.models.subscription import Subscription
from creditsub.core.security import create_access_token
from creditsub.core.auth_dependency import get_db, get_gateway


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

client = TestClient(app)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function", autouse=True)
def setup_app(gateway):
    """Fresh tables and a fake gateway for each test."""
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def test_user(db_session):
    user = User(full_name="Test User", email="test@example.com", credits=0)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user):
    token = create_access_token({"sub": test_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def plan(db_session):
    plan = SubscriptionPlan(name="Monthly", price=1999, interval="month", credit_amount=500)
    db_session.add(plan)
    db_session.commit()
    db_session.refresh(plan)
    return plan


def test_requires_authentication():
    response = client.get("/subscriptions/active")
    assert response.status_code == 401


def test_create_payment_intent(auth_headers):
    response = client.post("/payments/intents", json={"amount": 1999}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["payment_intent_id"].startswith("pi_test_")
    assert data["client_secret"].endswith("_secret")


def test_confirm_credit_pack(auth_headers, gateway, db_session, test_user):
    gateway.add_intent("pi_pack", amount=500)

    response = client.post(
        "/payments/confirm",
        json={"payment_intent_id": "pi_pack", "credit_amount": 500},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["credits"] == 500
    assert data["subscription"] is None

    credits = client.get("/me/credits", headers=auth_headers).json()["data"]
    assert credits["credits"] == 500


def test_confirm_with_plan_then_get_active(auth_headers, gateway, plan):
    gateway.add_intent("pi_sub", amount=1999)

    response = client.post(
        "/payments/confirm",
        json={"payment_intent_id": "pi_sub", "credit_amount": 500, "plan_id": plan.id},
        headers=auth_headers,
    )
    assert response.status_code == 200
    subscription = response.json()["data"]["subscription"]
    assert subscription["status"] == "ACTIVE"
    assert subscription["plan"]["name"] == "Monthly"

    active = client.get("/subscriptions/active", headers=auth_headers).json()
    assert active["success"] is True
    assert active["data"]["id"] == subscription["id"]


def test_get_active_empty_is_not_an_error(auth_headers):
    response = client.get("/subscriptions/active", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": None}


def test_confirm_incomplete_payment_reports_error_code(auth_headers, gateway, db_session, test_user):
    gateway.add_intent("pi_wait", status="processing")

    response = client.post(
        "/payments/confirm",
        json={"payment_intent_id": "pi_wait", "credit_amount": 500},
        headers=auth_headers,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "PAYMENT_NOT_COMPLETED"
    db_session.refresh(test_user)
    assert test_user.credits == 0


def test_confirm_unknown_plan_returns_404(auth_headers, gateway):
    gateway.add_intent("pi_plan404")

    response = client.post(
        "/payments/confirm",
        json={"payment_intent_id": "pi_plan404", "plan_id": 777},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert response.json()["error_code"] == "PLAN_NOT_FOUND"


def test_cancel_then_cancel_again(auth_headers, gateway, plan):
    gateway.add_intent("pi_cancel")
    subscription = client.post(
        "/payments/confirm",
        json={"payment_intent_id": "pi_cancel", "plan_id": plan.id},
        headers=auth_headers,
    ).json()["data"]["subscription"]

    first = client.post(f"/subscriptions/{subscription['id']}/cancel", headers=auth_headers)
    second = client.post(f"/subscriptions/{subscription['id']}/cancel", headers=auth_headers)

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "CANCELLED"
    assert second.status_code == 409
    assert second.json()["error_code"] == "ALREADY_CANCELLED"


def test_cancel_missing_subscription(auth_headers):
    response = client.post("/subscriptions/999/cancel", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "SUBSCRIPTION_NOT_FOUND"


def test_list_subscriptions(auth_headers, gateway, plan, db_session):
    for ref in ("pi_x", "pi_y"):
        gateway.add_intent(ref)
        client.post("/payments/confirm", json={"payment_intent_id": ref, "plan_id": plan.id}, headers=auth_headers)

    mine = client.get("/subscriptions/me", headers=auth_headers).json()["data"]
    everything = client.get("/subscriptions", headers=auth_headers).json()["data"]

    assert len(mine) == 2
    assert len(everything) == 2
    assert {s["status"] for s in mine} == {"ACTIVE", "INACTIVE"}
    assert db_session.query(Subscription).count() == 2


def test_payment_method_flow(auth_headers):
    created = client.post(
        "/payment-methods",
        json={"stripe_payment_method_id": "pm_card_visa", "last_four_digits": "4242", "card_type": "visa"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    card = created.json()["data"]
    assert card["is_default"] is True

    listed = client.get("/payment-methods", headers=auth_headers).json()["data"]
    assert [c["id"] for c in listed] == [card["id"]]

    deleted = client.delete(f"/payment-methods/{card['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert client.get("/payment-methods", headers=auth_headers).json()["data"] == []

    again = client.delete(f"/payment-methods/{card['id']}", headers=auth_headers)
    assert again.status_code == 404


def test_plan_catalog_endpoints(auth_headers):
    created = client.post(
        "/plans",
        json={"name": "Quarterly", "price": 49.99, "interval": "quarterly", "credit_amount": 1500},
        headers=auth_headers,
    )
    assert created.status_code == 201
    plan = created.json()["data"]
    assert plan["price"] == 4999
    assert plan["interval"] == "quarter"

    patched = client.patch(f"/plans/{plan['id']}", json={"price": 59.99}, headers=auth_headers)
    assert patched.json()["data"]["price"] == 5999

    client.delete(f"/plans/{plan['id']}", headers=auth_headers)
    assert client.get("/plans").json()["data"] == []
    assert client.get(f"/plans/{plan['id']}").json()["data"]["status"] == "inactive"


def test_payment_history(auth_headers, gateway, plan):
    gateway.add_intent("pi_hist_1", amount=500)
    gateway.add_intent("pi_hist_2", amount=1999)
    client.post("/payments/confirm", json={"payment_intent_id": "pi_hist_1", "credit_amount": 500}, headers=auth_headers)
    client.post("/payments/confirm", json={"payment_intent_id": "pi_hist_2", "plan_id": plan.id}, headers=auth_headers)

    response = client.get("/payments", headers=auth_headers)

    assert response.status_code == 200
    payments = response.json()["data"]
    assert {p["stripe_payment_intent_id"] for p in payments} == {"pi_hist_1", "pi_hist_2"}
    assert {p["kind"] for p in payments} == {"purchase"}

    window = client.get(
        "/payments",
        params={"begin_time": "2000-01-01T00:00:00Z", "end_time": "2099-01-01T00:00:00Z"},
        headers=auth_headers,
    )
    future = client.get("/payments", params={"begin_time": "2099-01-01T00:00:00"}, headers=auth_headers)

    assert len(window.json()["data"]) == 2
    assert future.json()["data"] == []


def test_payment_history_rejects_inverted_window(auth_headers):
    response = client.get(
        "/payments",
        params={"begin_time": "2024-02-01T00:00:00", "end_time": "2024-01-01T00:00:00"},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_payment_history_requires_authentication():
    assert client.get("/payments").status_code == 401
