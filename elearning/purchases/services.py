"""
Course Purchase Services

Business logic for buying a course, kept out of the views so it can be
driven by HTTP handlers, the reconciliation command and tests alike. All
services receive their payment gateway explicitly.

Services:
- CheckoutService: creates a pending purchase backed by a Stripe session
- WebhookReconciler: turns verified `checkout.session.completed` events
  into completed purchases and enrollments
- grant_entitlements: idempotent enrollment fan-out for one purchase

Idempotency & Safety
--------------------
- The pending→completed transition is a conditional UPDATE on a row
  locked with `select_for_update()`; only the delivery that flips the
  status performs the fan-out.
- Duplicate deliveries of an already completed purchase are acknowledged
  without any write.
- Status transition and fan-out share one `transaction.atomic()` block.
  A database failure rolls both back and the webhook answers with an
  error status, so Stripe redelivers into a clean state.
- Every fan-out step is a set-style write (conditional update, insert
  ignoring conflicts) and can be re-run by `reconcile_purchases`.

Author: DSP Development Team
Date: 2025-09-03
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from core.exceptions import (
    ConflictException,
    GatewayException,
    NotFoundException,
)
from core.stripe_integration.gateway import (
    CHECKOUT_SESSION_COMPLETED,
    StripeGateway,
    from_minor_units,
    to_minor_units,
)

from ..courses.models import Course, Lecture
from .models import CoursePurchase

logger = logging.getLogger(__name__)

DUPLICATE_PURCHASE = "duplicate_purchase"


@dataclass(frozen=True)
class CheckoutResult:
    purchase: CoursePurchase
    url: str


@dataclass(frozen=True)
class WebhookOutcome:
    """
    Result of processing one webhook delivery.

    Every outcome is acknowledged to the gateway; `processed` tells
    whether this delivery changed any state.
    """

    message: str
    processed: bool = False


RECEIVED = WebhookOutcome("Received")
ALREADY_PROCESSED = WebhookOutcome("Already processed")
PURCHASE_NOT_FOUND = WebhookOutcome("Purchase not found")


def _get_course(course_id: Any) -> Course:
    try:
        return Course.objects.get(pk=course_id)
    except (Course.DoesNotExist, ValueError, TypeError):
        raise NotFoundException("Course not found!", resource="course")


def _extract_data_object(event: Dict[str, Any]) -> Dict[str, Any]:
    """Return the event's `data.object` payload (or `{}` if absent)."""
    data = event.get("data")
    if isinstance(data, dict) and isinstance(data.get("object"), dict):
        return data["object"]
    return {}


def has_completed_purchase(user, course: Course) -> bool:
    return CoursePurchase.objects.filter(
        user=user, course=course, status=CoursePurchase.Status.COMPLETED
    ).exists()


def grant_entitlements(purchase: CoursePurchase) -> int:
    """
    Apply the entitlement fan-out of a completed purchase.

    - unlocks every lecture of the course that is not unlocked yet
    - enrolls the buyer (adds the course to the user's enrolled courses
      and the user to the course's enrolled students in one row)
    - stamps `entitlements_granted_at`

    Safe to call any number of times.

    Returns:
        Number of lectures unlocked by this call
    """
    now = timezone.now()
    Enrollment = Course.enrolled_students.through

    with transaction.atomic():
        unlocked = Lecture.objects.filter(
            course_id=purchase.course_id, is_preview_free=False
        ).update(is_preview_free=True, updated_at=now)

        Enrollment.objects.bulk_create(
            [Enrollment(course_id=purchase.course_id, user_id=purchase.user_id)],
            ignore_conflicts=True,
        )

        CoursePurchase.objects.filter(pk=purchase.pk).update(
            entitlements_granted_at=now, updated_at=now
        )

    purchase.entitlements_granted_at = now
    logger.info(
        "Granted entitlements for purchase %s (user=%s, course=%s, unlocked_lectures=%s).",
        purchase.pk,
        purchase.user_id,
        purchase.course_id,
        unlocked,
    )
    return unlocked


class CheckoutService:
    """
    Creates checkout sessions for course purchases.

    Attributes:
        gateway: Payment gateway used to open the session
        frontend_url: Base URL of the frontend for redirects
        success_path: Path template for the success redirect ({course_id})
        cancel_path: Path template for the cancel redirect ({course_id})
    """

    def __init__(
        self,
        gateway: StripeGateway,
        *,
        frontend_url: str,
        success_path: str = "/course-progress/{course_id}",
        cancel_path: str = "/course-detail/{course_id}",
    ) -> None:
        self.gateway = gateway
        self.frontend_url = frontend_url.rstrip("/")
        self.success_path = success_path
        self.cancel_path = cancel_path

    def redirect_urls(self, course: Course) -> Tuple[str, str]:
        return (
            self.frontend_url + self.success_path.format(course_id=course.pk),
            self.frontend_url + self.cancel_path.format(course_id=course.pk),
        )

    def create_checkout_session(self, user, course_id: Any) -> CheckoutResult:
        """
        Open a Stripe Checkout Session and record a pending purchase.

        The purchase row is only written after the gateway returned a
        session with a redirect URL, so every stored session id is known
        to Stripe. Earlier pending purchases are left untouched.

        Raises:
            NotFoundException: Unknown course
            ConflictException: The user already owns the course
            GatewayException: Stripe failed or returned no redirect URL
        """
        course = _get_course(course_id)

        if has_completed_purchase(user, course):
            raise ConflictException("Course already purchased")

        success_url, cancel_url = self.redirect_urls(course)
        session = self.gateway.create_checkout_session(
            title=course.title,
            unit_amount=to_minor_units(course.price),
            thumbnail=course.thumbnail or None,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"course_id": str(course.pk), "user_id": str(user.pk)},
        )

        if not session.url:
            logger.error("Checkout session %s returned without a redirect URL.", session.id)
            raise GatewayException(
                "Error while creating session", details={"session_id": session.id}
            )

        purchase = CoursePurchase.objects.create(
            course=course,
            user=user,
            amount=course.price,
            currency=self.gateway.currency,
            status=CoursePurchase.Status.PENDING,
            payment_session_id=session.id,
        )
        logger.info(
            "Created pending purchase %s (user=%s, course=%s, session=%s).",
            purchase.pk,
            user.pk,
            course.pk,
            session.id,
        )
        return CheckoutResult(purchase=purchase, url=session.url)


class WebhookReconciler:
    """
    Applies verified gateway events to purchases.

    Only `checkout.session.completed` changes state; every other event
    type is acknowledged as a no-op.
    """

    def __init__(self, gateway: StripeGateway) -> None:
        self.gateway = gateway

    def handle_event(self, payload: bytes, signature: Optional[str]) -> WebhookOutcome:
        """
        Verify and process one webhook delivery.

        Raises:
            AuthenticationException: Signature missing or invalid; nothing
                was read or written
        """
        event = self.gateway.verify_event(payload, signature)
        event_type = event.get("type")

        logger.info("[webhook] %s (event_id=%s)", event_type, event.get("id"))

        if event_type != CHECKOUT_SESSION_COMPLETED:
            logger.debug("Unhandled event type: %s", event_type)
            return RECEIVED

        session = _extract_data_object(event)
        session_id = session.get("id")
        if not session_id:
            logger.warning("checkout.session.completed without session id (event_id=%s).", event.get("id"))
            return PURCHASE_NOT_FOUND

        payment_intent = session.get("payment_intent")
        return self.complete_purchase(
            session_id,
            amount_total=session.get("amount_total"),
            payment_intent=payment_intent if isinstance(payment_intent, str) else None,
        )

    def complete_purchase(
        self,
        session_id: str,
        *,
        amount_total: Optional[int] = None,
        payment_intent: Optional[str] = None,
    ) -> WebhookOutcome:
        """
        Transition the purchase of `session_id` from pending to completed
        and grant entitlements, exactly once.

        Args:
            session_id: Gateway checkout session id
            amount_total: Charged amount in minor units, if reported
            payment_intent: Stripe PaymentIntent id, if reported

        Returns:
            WebhookOutcome; `processed` is True only for the first completion
        """
        with transaction.atomic():
            try:
                purchase = CoursePurchase.objects.select_for_update().get(
                    payment_session_id=session_id
                )
            except CoursePurchase.DoesNotExist:
                logger.warning("Purchase not found for payment session %s.", session_id)
                return PURCHASE_NOT_FOUND

            if purchase.status != CoursePurchase.Status.PENDING:
                logger.info(
                    "Purchase %s already %s; ignoring duplicate event for session %s.",
                    purchase.pk,
                    purchase.status,
                    session_id,
                )
                return ALREADY_PROCESSED

            now = timezone.now()
            changes: Dict[str, Any] = {
                "status": CoursePurchase.Status.COMPLETED,
                "completed_at": now,
                "updated_at": now,
            }
            if amount_total is not None:
                changes["amount"] = from_minor_units(amount_total)
            if payment_intent:
                changes["payment_intent_id"] = payment_intent

            try:
                with transaction.atomic():
                    updated = CoursePurchase.objects.filter(
                        pk=purchase.pk, status=CoursePurchase.Status.PENDING
                    ).update(**changes)
            except IntegrityError:
                return self._reject_duplicate(purchase)

            if not updated:
                return ALREADY_PROCESSED

            for name, value in changes.items():
                setattr(purchase, name, value)

            logger.info(
                "Purchase %s completed (user=%s, course=%s, amount=%s).",
                purchase.pk,
                purchase.user_id,
                purchase.course_id,
                purchase.amount,
            )
            grant_entitlements(purchase)

        return WebhookOutcome("Received", processed=True)

    def _reject_duplicate(self, purchase: CoursePurchase) -> WebhookOutcome:
        """
        A second session for an already owned course was paid. The unique
        constraint keeps it from completing; it is marked failed so the
        charge can be refunded by hand.
        """
        CoursePurchase.objects.filter(
            pk=purchase.pk, status=CoursePurchase.Status.PENDING
        ).update(
            status=CoursePurchase.Status.FAILED,
            failure_reason=DUPLICATE_PURCHASE,
            updated_at=timezone.now(),
        )
        logger.error(
            "Paid session %s for course %s already owned by user %s; purchase %s "
            "marked failed, refund required.",
            purchase.payment_session_id,
            purchase.course_id,
            purchase.user_id,
            purchase.pk,
        )
        return WebhookOutcome("Duplicate purchase", processed=True)


def course_detail_with_purchase_status(user, course_id: Any) -> Tuple[Course, bool]:
    """Return the course with creator and lectures plus whether `user` owns it."""
    try:
        course = (
            Course.objects.select_related("creator")
            .prefetch_related("lectures")
            .get(pk=course_id)
        )
    except (Course.DoesNotExist, ValueError, TypeError):
        raise NotFoundException("Course not found!", resource="course")
    return course, has_completed_purchase(user, course)


def purchased_courses() -> QuerySet:
    """All completed purchases with their course, newest first."""
    return CoursePurchase.objects.filter(
        status=CoursePurchase.Status.COMPLETED
    ).select_related("course", "user")
