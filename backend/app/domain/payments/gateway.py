"""
Payment Gateway adapters.

The service only creates charge intents and records their results; the
client confirms the charge with the gateway directly.

- StripeGateway: stripe-python StripeClient (async, httpx transport),
  behind a circuit breaker
- FakePaymentGateway: in-process gateway for development and tests
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from uuid import uuid4

import stripe

from backend.app.core.exceptions import PaymentGatewayError
from backend.app.core.reliability import CircuitBreaker, CircuitOpenError

logger = logging.getLogger("parcel_delivery.payments")

# Outages trip the breaker; declines and bad requests do not
GATEWAY_OUTAGE_ERRORS = (stripe.APIConnectionError, stripe.APIError, stripe.RateLimitError)


@dataclass(frozen=True)
class PaymentIntent:
    """Charge intent created at the gateway."""
    intent_id: str
    client_secret: str
    amount: int
    currency: str
    status: Optional[str] = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_payment_intent(self, amount_in_cents: int, currency: str) -> PaymentIntent:
        """Create a card payment intent for the given amount."""
        ...

    async def close(self) -> None:
        return None


class StripeGateway(PaymentGateway):
    """
    Stripe adapter over the official SDK.

    A StripeClient can be injected; otherwise one is built with the async
    httpx transport and SDK retries disabled, so retry policy stays with
    the circuit breaker.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
        client: Optional[stripe.StripeClient] = None
    ):
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5,
            reset_timeout=60,
            tracked_exceptions=GATEWAY_OUTAGE_ERRORS,
            name="stripe"
        )
        self._http_client = None
        if client is None:
            self._http_client = stripe.HTTPXClient(timeout=timeout)
            client = stripe.StripeClient(api_key, http_client=self._http_client, max_network_retries=0)
        self.client = client

    async def _create_intent(self, amount_in_cents: int, currency: str):
        return await self.client.v1.payment_intents.create_async(params={
            "amount": amount_in_cents,
            "currency": currency,
            "payment_method_types": ["card"],
        })

    async def create_payment_intent(self, amount_in_cents: int, currency: str) -> PaymentIntent:
        try:
            intent = await self.circuit_breaker.call(self._create_intent, amount_in_cents, currency)
        except CircuitOpenError:
            raise PaymentGatewayError("Payment gateway temporarily unavailable")
        except GATEWAY_OUTAGE_ERRORS as e:
            logger.error("Stripe request failed: %s", e)
            raise PaymentGatewayError("Payment gateway request failed")
        except stripe.StripeError as e:
            raise PaymentGatewayError(
                e.user_message or "Payment intent rejected",
                details={"type": type(e).__name__, "code": e.code}
            )

        return PaymentIntent(
            intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
            status=intent.status
        )

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.close_async()


class FakePaymentGateway(PaymentGateway):
    """Configurable fake gateway; records calls for assertions."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.calls: List[dict] = []

    async def create_payment_intent(self, amount_in_cents: int, currency: str) -> PaymentIntent:
        self.calls.append({"amount": amount_in_cents, "currency": currency})
        if not self.should_succeed:
            raise PaymentGatewayError("Card declined")

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        return PaymentIntent(
            intent_id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            amount=amount_in_cents,
            currency=currency,
            status="requires_payment_method"
        )


def build_gateway(settings) -> PaymentGateway:
    if settings.payment_gateway_key:
        return StripeGateway(
            api_key=settings.payment_gateway_key,
            timeout=settings.payment_gateway_timeout_seconds
        )
    logger.warning("No payment gateway key configured, using fake gateway")
    return FakePaymentGateway()
