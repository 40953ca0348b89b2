"""
Stripe charge gateway.

Wraps the three PaymentIntent calls the billing core needs: create an intent
for the client to confirm, retrieve an intent's status, and create+confirm an
off-session charge against a saved card.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import stripe
from creditsub.core.config import (
    STRIPE_SECRET_KEY,
    STRIPE_CURRENCY,
    STRIPE_TIMEOUT_SECONDS,
    STRIPE_MAX_NETWORK_RETRIES,
)
from creditsub.core.errors import GatewayFailure

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


@dataclass
class ChargeIntent:
    id: str
    status: str
    amount: int
    currency: str
    client_secret: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


class ChargeGateway(Protocol):
    def create_intent(self, amount: int, currency: str) -> ChargeIntent:
        ...

    def retrieve_intent(self, intent_id: str) -> ChargeIntent:
        ...

    def charge_off_session(
        self,
        instrument_ref: str,
        amount: int,
        currency: str,
        customer_id: Optional[str] = None,
    ) -> ChargeIntent:
        ...


def _to_charge_intent(intent) -> ChargeIntent:
    return ChargeIntent(
        id=intent.id,
        status=intent.status,
        amount=intent.amount,
        currency=intent.currency,
        client_secret=getattr(intent, "client_secret", None),
    )


class StripeChargeGateway:
    """
    ChargeGateway backed by a dedicated ``stripe.StripeClient``.

    Every request has a bounded HTTP timeout. Stripe errors, timeouts and card
    declines included, are raised as GatewayFailure.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = STRIPE_TIMEOUT_SECONDS,
        max_network_retries: int = STRIPE_MAX_NETWORK_RETRIES,
        default_currency: str = STRIPE_CURRENCY,
    ):
        api_key = api_key or STRIPE_SECRET_KEY
        if not api_key:
            raise ValueError("Stripe not configured - STRIPE_SECRET_KEY required")

        self.default_currency = default_currency
        self.client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=max_network_retries,
        )

    def create_intent(self, amount: int, currency: Optional[str] = None) -> ChargeIntent:
        try:
            intent = self.client.payment_intents.create(params={
                "amount": int(amount),
                "currency": currency or self.default_currency,
                "automatic_payment_methods": {"enabled": True},
            })
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {e}")
            raise GatewayFailure(f"Failed to create payment intent: {e.user_message or e}")

        logger.info(f"Created payment intent: intent_id={intent.id}, amount={intent.amount}")
        return _to_charge_intent(intent)

    def retrieve_intent(self, intent_id: str) -> ChargeIntent:
        try:
            intent = self.client.payment_intents.retrieve(intent_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving payment intent {intent_id}: {e}")
            raise GatewayFailure(f"Failed to retrieve payment intent: {e.user_message or e}")
        return _to_charge_intent(intent)

    def charge_off_session(
        self,
        instrument_ref: str,
        amount: int,
        currency: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> ChargeIntent:
        params = {
            "amount": int(amount),
            "currency": currency or self.default_currency,
            "payment_method": instrument_ref,
            "payment_method_types": ["card"],
            "off_session": True,
            "confirm": True,
        }
        if customer_id:
            params["customer"] = customer_id

        try:
            intent = self.client.payment_intents.create(params=params)
        except stripe.StripeError as e:
            logger.warning(f"Off-session charge failed: amount={amount}, error={e}")
            raise GatewayFailure(f"Off-session charge failed: {e.user_message or e}")

        logger.info(f"Off-session charge: intent_id={intent.id}, status={intent.status}")
        return _to_charge_intent(intent)
