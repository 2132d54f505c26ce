"""
Stripe Payment Gateway Client (core.stripe_integration)
=======================================================

Thin wrapper around the official `stripe` SDK exposing the two primitives
the purchase flow needs:

1. `create_checkout_session(...)`
   Creates a hosted Checkout Session (mode="payment") for a single course
   and returns its id and redirect URL.

2. `verify_event(payload, signature)`
   Verifies the `Stripe-Signature` header against the UNPARSED request
   body with the endpoint's shared secret and only then decodes the JSON.

Plus `retrieve_checkout_session(...)` for the reconciliation backfill.

Timeouts
--------
The SDK's module-level HTTP client is replaced once per process with a
`RequestsClient` carrying `STRIPE_API_TIMEOUT`, and network retries are
bounded by `STRIPE_MAX_NETWORK_RETRIES`. Connection failures and timeouts
surface as `GatewayTimeoutException`, every other Stripe error as
`GatewayException`.

Author: DSP Development Team
Date: 2025-09-03
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional

import stripe
from django.conf import settings

from core.exceptions import (
    AuthenticationException,
    GatewayException,
    GatewayTimeoutException,
)

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class CheckoutSession:
    """Gateway-side handle for one checkout attempt."""

    id: str
    url: Optional[str] = None
    payment_status: Optional[str] = None
    payment_intent: Optional[str] = None
    amount_total: Optional[int] = None
    metadata: Dict[str, str] = field(default_factory=dict)


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal price (e.g. 49.99) to Stripe's integer minor units."""
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def from_minor_units(amount: int) -> Decimal:
    """Convert Stripe's integer minor units back to a decimal amount."""
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


def configure_stripe_client(timeout: float, max_network_retries: int) -> None:
    """
    Install the process-wide HTTP client used by the stripe SDK.

    Called once from `get_payment_gateway()` at first use; keep it free of
    network calls.
    """
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
    stripe.max_network_retries = max_network_retries
    logger.info(
        "Stripe client configured (timeout=%ss, max_network_retries=%s)",
        timeout,
        max_network_retries,
    )


class StripeGateway:
    """
    Payment gateway backed by Stripe Checkout.

    Attributes:
        api_key: Secret key used for API calls (test or live)
        webhook_secret: Signing secret of the webhook endpoint
        currency: ISO currency code for line items
        tolerance: Maximum age (seconds) of a signed webhook payload
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        *,
        currency: str = "eur",
        tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
        allowed_countries: Optional[List[str]] = None,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.tolerance = tolerance
        self.allowed_countries = allowed_countries or []

    def create_checkout_session(
        self,
        *,
        title: str,
        unit_amount: int,
        thumbnail: Optional[str],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        """
        Create a one-off Checkout Session for a single course.

        Args:
            title: Product name shown on the hosted page
            unit_amount: Price in minor units (cents)
            thumbnail: Optional product image URL
            success_url: Redirect target after payment
            cancel_url: Redirect target when the buyer cancels
            metadata: Correlation data echoed back in webhook events

        Returns:
            CheckoutSession with the gateway's id and redirect URL

        Raises:
            GatewayTimeoutException: Stripe could not be reached in time
            GatewayException: Stripe rejected the request
        """
        product_data: Dict[str, Any] = {"name": title}
        if thumbnail:
            product_data["images"] = [thumbnail]

        params: Dict[str, Any] = dict(
            mode="payment",
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": product_data,
                        "unit_amount": unit_amount,
                    },
                    "quantity": 1,
                }
            ],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
        )
        if self.allowed_countries:
            params["shipping_address_collection"] = {
                "allowed_countries": self.allowed_countries
            }

        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.APIConnectionError as exc:
            logger.error("Stripe unreachable while creating checkout session: %s", exc)
            raise GatewayTimeoutException(details={"error": str(exc)}) from exc
        except stripe.StripeError as exc:
            logger.error("Stripe rejected checkout session: %s", exc)
            raise GatewayException(
                details={"stripe_error": getattr(exc, "user_message", None) or str(exc)}
            ) from exc

        return CheckoutSession(
            id=session.id,
            url=getattr(session, "url", None),
            payment_status=getattr(session, "payment_status", None),
        )

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch the current state of a Checkout Session from Stripe."""
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.APIConnectionError as exc:
            raise GatewayTimeoutException(details={"error": str(exc)}) from exc
        except stripe.StripeError as exc:
            raise GatewayException(
                message="Checkout session could not be retrieved",
                details={"stripe_error": str(exc), "session_id": session_id},
            ) from exc

        return CheckoutSession(
            id=session.id,
            url=getattr(session, "url", None),
            payment_status=getattr(session, "payment_status", None),
            payment_intent=getattr(session, "payment_intent", None),
            amount_total=getattr(session, "amount_total", None),
        )

    def verify_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Authenticate a webhook delivery and decode it.

        The signature is checked against the raw bytes exactly as received;
        the body is parsed only after verification succeeded.

        Args:
            payload: Raw request body
            signature: Value of the `Stripe-Signature` header

        Returns:
            The decoded Stripe event as a plain dict

        Raises:
            AuthenticationException: Header missing, signature invalid,
                timestamp outside tolerance, or payload not valid JSON
        """
        if not signature:
            raise AuthenticationException("Missing Stripe signature header")

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, self.tolerance
            )
        except stripe.SignatureVerificationError as exc:
            raise AuthenticationException(
                details={"error": getattr(exc, "user_message", None) or str(exc)}
            ) from exc
        except UnicodeDecodeError as exc:
            raise AuthenticationException("Invalid webhook payload") from exc

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise AuthenticationException("Invalid webhook payload") from exc
        if not isinstance(event, dict):
            raise AuthenticationException("Invalid webhook payload")
        return event


@lru_cache(maxsize=1)
def get_payment_gateway() -> StripeGateway:
    """
    Build the process-wide gateway from settings on first use.

    Views obtain the gateway through this factory and hand it to the
    services, which never read settings or module globals themselves.
    """
    configure_stripe_client(
        timeout=settings.STRIPE_API_TIMEOUT,
        max_network_retries=settings.STRIPE_MAX_NETWORK_RETRIES,
    )
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.DEFAULT_CURRENCY,
        tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        allowed_countries=settings.CHECKOUT_ALLOWED_COUNTRIES,
    )
