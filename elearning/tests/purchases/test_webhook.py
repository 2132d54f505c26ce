import time
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from rest_framework import status
from rest_framework.test import APITestCase

from elearning.courses.models import Course
from elearning.purchases.models import CoursePurchase
from elearning.tests.helpers import (
    checkout_completed_event,
    encode_event,
    make_course,
    make_purchase,
    make_user,
    sign_payload,
    webhook_gateway,
)

WEBHOOK_URL = "/api/elearning/purchases/webhook/"


class StripeWebhookTests(APITestCase):
    """
    Die Webhook-Tests schicken echte, signierte Rohdaten an den Endpoint;
    nur die Gateway-Fabrik wird durch ein Gateway mit Test-Secret ersetzt.
    """

    @classmethod
    def setUpTestData(cls):
        cls.user = make_user()
        cls.course = make_course(lectures=3)

    def setUp(self):
        patcher = mock.patch(
            "elearning.purchases.views.get_payment_gateway", return_value=webhook_gateway()
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.purchase = make_purchase(self.user, self.course, session_id="cs_test_1")

    def deliver(self, event, signature=None, payload=None):
        payload = encode_event(event) if payload is None else payload
        headers = {}
        if signature is not False:
            headers["HTTP_STRIPE_SIGNATURE"] = signature or sign_payload(payload)
        return self.client.post(
            WEBHOOK_URL, data=payload, content_type="application/json", **headers
        )

    def enrollment_count(self):
        return Course.enrolled_students.through.objects.filter(
            course_id=self.course.id, user_id=self.user.id
        ).count()

    # --- Signaturprüfung ---

    def test_missing_signature_is_rejected_without_mutation(self):
        response = self.deliver(checkout_completed_event("cs_test_1"), signature=False)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.PENDING)
        self.assertEqual(self.enrollment_count(), 0)

    def test_invalid_signature_is_rejected_without_mutation(self):
        payload = encode_event(checkout_completed_event("cs_test_1"))
        forged = sign_payload(payload, secret="whsec_wrong")

        response = self.deliver(None, signature=forged, payload=payload)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error_code"], "AuthenticationError")
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.PENDING)

    def test_tampered_body_is_rejected(self):
        payload = encode_event(checkout_completed_event("cs_test_1"))
        signature = sign_payload(payload)
        tampered = encode_event(checkout_completed_event("cs_test_1", amount_total=1))

        response = self.deliver(None, signature=signature, payload=tampered)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_expired_timestamp_is_rejected(self):
        payload = encode_event(checkout_completed_event("cs_test_1"))
        stale = sign_payload(payload, timestamp=int(time.time()) - 3600)

        response = self.deliver(None, signature=stale, payload=payload)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_signed_garbage_is_rejected(self):
        response = self.deliver(None, payload=b"not json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # --- Abschluss des Kaufs ---

    def test_completed_session_completes_purchase_and_grants_access(self):
        response = self.deliver(checkout_completed_event("cs_test_1", amount_total=2500))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b"Received")

        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.COMPLETED)
        self.assertEqual(self.purchase.amount, Decimal("25.00"))
        self.assertEqual(self.purchase.payment_intent_id, "pi_test_1")
        self.assertIsNotNone(self.purchase.completed_at)
        self.assertIsNotNone(self.purchase.entitlements_granted_at)

        self.assertEqual(self.enrollment_count(), 1)
        self.assertIn(self.course, self.user.enrolled_courses.all())
        self.assertFalse(self.course.lectures.filter(is_preview_free=False).exists())

    def test_missing_amount_total_keeps_checkout_price(self):
        self.deliver(checkout_completed_event("cs_test_1", amount_total=None))

        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.COMPLETED)
        self.assertEqual(self.purchase.amount, Decimal("49.99"))

    def test_replayed_event_is_acknowledged_without_second_fan_out(self):
        event = checkout_completed_event("cs_test_1")
        self.deliver(event)
        self.purchase.refresh_from_db()
        first_completed_at = self.purchase.completed_at

        response = self.deliver(event)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b"Already processed")
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.completed_at, first_completed_at)
        self.assertEqual(self.enrollment_count(), 1)
        self.assertEqual(self.course.enrolled_students.count(), 1)

    def test_unknown_session_is_acknowledged(self):
        response = self.deliver(checkout_completed_event("cs_unknown"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b"Purchase not found")
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.PENDING)

    def test_other_event_types_are_noop(self):
        event = checkout_completed_event("cs_test_1")
        event["type"] = "payment_intent.succeeded"

        response = self.deliver(event)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b"Received")
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.PENDING)
        self.assertEqual(self.enrollment_count(), 0)

    def test_second_paid_session_for_owned_course_is_marked_failed(self):
        self.deliver(checkout_completed_event("cs_test_1"))
        second = make_purchase(self.user, self.course, session_id="cs_test_2")

        response = self.deliver(checkout_completed_event("cs_test_2"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        second.refresh_from_db()
        self.assertEqual(second.status, CoursePurchase.Status.FAILED)
        self.assertEqual(second.failure_reason, "duplicate_purchase")
        self.assertEqual(
            CoursePurchase.objects.filter(status=CoursePurchase.Status.COMPLETED).count(), 1
        )
        self.assertEqual(self.enrollment_count(), 1)

    def test_database_failure_rolls_back_and_redelivery_succeeds(self):
        event = checkout_completed_event("cs_test_1")
        with mock.patch(
            "elearning.purchases.services.grant_entitlements",
            side_effect=DatabaseError("disk I/O error"),
        ):
            response = self.deliver(event)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.PENDING)

        response = self.deliver(event)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.status, CoursePurchase.Status.COMPLETED)
        self.assertEqual(self.enrollment_count(), 1)
