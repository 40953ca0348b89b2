"""
Shared test doubles.
"""
import itertools
from datetime import datetime

import pytest

from creditsub.core.errors import GatewayFailure
from creditsub.services.stripe_service import ChargeIntent

# Month-end on purpose: pins the clamping rule in lifecycle tests
FIXED_NOW = datetime(2024, 1, 31, 12, 0, 0)


class FakeGateway:
    """
    In-memory ChargeGateway.

    ``intents`` holds what ``retrieve_intent`` returns. ``off_session`` maps
    an instrument ref to a status string, or to an exception to raise.
    """

    def __init__(self):
        self.intents = {}
        self.off_session = {}
        self.off_session_calls = []
        self._ids = itertools.count(1)

    def add_intent(self, intent_id, status="succeeded", amount=1999, currency="usd"):
        self.intents[intent_id] = ChargeIntent(id=intent_id, status=status, amount=amount, currency=currency)
        return self.intents[intent_id]

    def create_intent(self, amount, currency=None):
        intent_id = f"pi_test_{next(self._ids)}"
        intent = ChargeIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency or "usd",
            client_secret=f"{intent_id}_secret",
        )
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id):
        if intent_id not in self.intents:
            raise GatewayFailure(f"No such payment_intent: {intent_id}")
        return self.intents[intent_id]

    def charge_off_session(self, instrument_ref, amount, currency=None, customer_id=None):
        self.off_session_calls.append((instrument_ref, amount, currency, customer_id))
        outcome = self.off_session.get(instrument_ref, "succeeded")
        if isinstance(outcome, Exception):
            raise outcome
        return ChargeIntent(
            id=f"pi_renew_{next(self._ids)}",
            status=outcome,
            amount=amount,
            currency=currency or "usd",
        )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def fixed_now():
    return FIXED_NOW
