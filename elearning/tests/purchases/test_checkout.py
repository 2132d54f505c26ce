from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from core.exceptions import ConflictException, GatewayException, NotFoundException
from elearning.purchases.models import CoursePurchase
from elearning.purchases.services import CheckoutService
from elearning.tests.helpers import FakeGateway, make_course, make_purchase, make_user

CHECKOUT_URL = "/api/elearning/purchases/checkout/create-checkout-session/"


class CheckoutServiceTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user()
        cls.course = make_course(price="49.99")

    def setUp(self):
        self.gateway = FakeGateway()
        self.service = CheckoutService(self.gateway, frontend_url="http://localhost:5173/")

    def test_creates_pending_purchase_with_session_id(self):
        result = self.service.create_checkout_session(self.user, self.course.id)

        self.assertEqual(result.url, self.gateway.url)
        purchase = CoursePurchase.objects.get()
        self.assertEqual(purchase.status, CoursePurchase.Status.PENDING)
        self.assertEqual(purchase.amount, Decimal("49.99"))
        self.assertEqual(purchase.payment_session_id, "cs_test_1")
        self.assertEqual(result.purchase, purchase)

    def test_gateway_receives_price_redirects_and_metadata(self):
        self.service.create_checkout_session(self.user, self.course.id)

        params = self.gateway.calls[0]
        self.assertEqual(params["unit_amount"], 4999)
        self.assertEqual(params["title"], self.course.title)
        self.assertEqual(params["success_url"], f"http://localhost:5173/course-progress/{self.course.id}")
        self.assertEqual(params["cancel_url"], f"http://localhost:5173/course-detail/{self.course.id}")
        self.assertEqual(
            params["metadata"], {"course_id": str(self.course.id), "user_id": str(self.user.id)}
        )

    def test_unknown_course_is_not_found(self):
        with self.assertRaises(NotFoundException):
            self.service.create_checkout_session(self.user, 9999)
        self.assertEqual(self.gateway.calls, [])

    def test_already_purchased_course_is_conflict_and_creates_nothing(self):
        make_purchase(self.user, self.course, status=CoursePurchase.Status.COMPLETED)

        with self.assertRaises(ConflictException):
            self.service.create_checkout_session(self.user, self.course.id)

        self.assertEqual(CoursePurchase.objects.count(), 1)
        self.assertEqual(self.gateway.calls, [])

    def test_existing_pending_purchase_does_not_block_new_checkout(self):
        self.service.create_checkout_session(self.user, self.course.id)
        self.service.create_checkout_session(self.user, self.course.id)

        self.assertEqual(
            CoursePurchase.objects.filter(status=CoursePurchase.Status.PENDING).count(), 2
        )

    def test_missing_redirect_url_is_gateway_error_without_purchase(self):
        self.service.gateway = FakeGateway(url=None)

        with self.assertRaises(GatewayException):
            self.service.create_checkout_session(self.user, self.course.id)
        self.assertFalse(CoursePurchase.objects.exists())

    def test_gateway_failure_leaves_no_purchase(self):
        self.service.gateway = FakeGateway(fail=True)

        with self.assertRaises(GatewayException):
            self.service.create_checkout_session(self.user, self.course.id)
        self.assertFalse(CoursePurchase.objects.exists())


@override_settings(FRONTEND_URL="http://localhost:5173")
class CheckoutViewTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user()
        cls.course = make_course()

    def setUp(self):
        self.gateway = FakeGateway()
        patcher = mock.patch(
            "elearning.purchases.views.get_payment_gateway", return_value=self.gateway
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client.force_authenticate(user=self.user)

    def test_returns_success_and_url(self):
        response = self.client.post(CHECKOUT_URL, {"course_id": self.course.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"success": True, "url": self.gateway.url})

    def test_missing_course_id_is_validation_error(self):
        response = self.client.post(CHECKOUT_URL, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error_code"], "ValidationError")

    def test_unknown_course_is_404(self):
        response = self.client.post(CHECKOUT_URL, {"course_id": 9999}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["message"], "Course not found!")

    def test_already_purchased_is_409_and_creates_no_purchase(self):
        make_purchase(self.user, self.course, status=CoursePurchase.Status.COMPLETED)

        response = self.client.post(CHECKOUT_URL, {"course_id": self.course.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()["error_code"], "Conflict")
        self.assertEqual(CoursePurchase.objects.count(), 1)

    def test_gateway_error_is_502_without_internal_detail(self):
        self.gateway.fail = True

        response = self.client.post(CHECKOUT_URL, {"course_id": self.course.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertNotIn("card_declined", response.content.decode())

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.post(CHECKOUT_URL, {"course_id": self.course.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
