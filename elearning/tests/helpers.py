"""
Shared test helpers: object factories, a fake payment gateway and a
Stripe-compatible webhook signer.
"""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.contrib.auth.models import User

from core.exceptions import GatewayException
from core.stripe_integration.gateway import CheckoutSession, StripeGateway
from elearning.courses.models import Course, Lecture
from elearning.purchases.models import CoursePurchase

WEBHOOK_SECRET = "whsec_test_secret"


def make_user(username: str = "Max", **extra) -> User:
    return User.objects.create_user(username=username, password="Musterpassword", **extra)


def make_course(title: str = "Python Grundlagen", lectures: int = 3, price: str = "49.99") -> Course:
    course = Course.objects.create(
        title=title,
        price=Decimal(price),
        thumbnail="https://cdn.example.com/thumb.png",
        is_published=True,
    )
    for index in range(lectures):
        Lecture.objects.create(course=course, title=f"Lektion {index + 1}", order=index)
    return course


def make_purchase(user, course, session_id: str = "cs_test_1", status=CoursePurchase.Status.PENDING) -> CoursePurchase:
    return CoursePurchase.objects.create(
        user=user,
        course=course,
        amount=course.price,
        status=status,
        payment_session_id=session_id,
    )


def webhook_gateway() -> StripeGateway:
    """Real gateway for signature checks; never performs a network call in tests."""
    return StripeGateway(api_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)


def checkout_completed_event(session_id: str, amount_total: Optional[int] = 4999, **session) -> Dict[str, Any]:
    obj = {
        "id": session_id,
        "object": "checkout.session",
        "amount_total": amount_total,
        "currency": "eur",
        "payment_status": "paid",
        "payment_intent": "pi_test_1",
        "metadata": {},
    }
    obj.update(session)
    return {
        "id": "evt_test_1",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": obj},
    }


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a `Stripe-Signature` header the way Stripe does (t=..., v1=HMAC-SHA256)."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def encode_event(event: Dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


class FakeGateway:
    """In-memory stand-in for StripeGateway used by checkout tests."""

    currency = "eur"

    def __init__(self, url: Optional[str] = "https://checkout.stripe.com/c/pay/cs_test", fail: bool = False):
        self.url = url
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []
        self.sessions: Dict[str, CheckoutSession] = {}

    def create_checkout_session(self, **params) -> CheckoutSession:
        self.calls.append(params)
        if self.fail:
            raise GatewayException(details={"stripe_error": "card_declined"})
        session = CheckoutSession(id=f"cs_test_{len(self.calls)}", url=self.url)
        self.sessions[session.id] = session
        return session

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise GatewayException(details={"session_id": session_id})

    def verify_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        return webhook_gateway().verify_event(payload, signature)
