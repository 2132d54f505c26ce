"""
Course Purchase Views

This module exposes the REST API endpoints of the purchase flow.

Endpoints
---------

1. CreateCheckoutSessionView
   - URL: /api/elearning/purchases/checkout/create-checkout-session/
   - Method: POST
   - Body: {"course_id": 42}
   - Auth: Required
   - Purpose:
       Creates a Stripe Checkout Session and a pending purchase.
       Returns {"success": true, "url": "<stripe hosted page>"}.

2. StripeWebhookView
   - URL: /api/elearning/purchases/webhook/
   - Method: POST
   - Auth: Stripe signature (Stripe-Signature header)
   - Purpose:
       Verifies the raw body and completes the purchase on
       `checkout.session.completed`.

3. CourseDetailWithPurchaseStatusView
   - URL: /api/elearning/purchases/course/<course_id>/detail-with-status/
   - Method: GET
   - Auth: Required
   - Purpose:
       Returns the course and whether the caller owns it.

4. PurchasedCoursesView
   - URL: /api/elearning/purchases/
   - Method: GET
   - Auth: Staff only
   - Purpose:
       Lists every completed purchase (reporting).

Webhook acknowledgement policy
------------------------------
- Missing/invalid signature → 400, nothing is read or written.
- Unknown session, duplicate delivery, other event types → 200, so Stripe
  stops redelivering events that can never succeed or already did.
- Database failure → 5xx. The transaction was rolled back, so the
  redelivery starts from the untouched pending purchase.

Author: DSP Development Team
Date: 2025-09-03
"""

import logging

from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ValidationException
from core.stripe_integration.gateway import get_payment_gateway

from ..courses.serializers import CourseSerializer
from .serializers import CheckoutRequestSerializer, CoursePurchaseSerializer
from .services import (
    CheckoutService,
    WebhookReconciler,
    course_detail_with_purchase_status,
    purchased_courses,
)

logger = logging.getLogger(__name__)


class CreateCheckoutSessionView(APIView):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CheckoutService:
        return CheckoutService(
            get_payment_gateway(),
            frontend_url=settings.FRONTEND_URL,
            success_path=settings.CHECKOUT_SUCCESS_PATH,
            cancel_path=settings.CHECKOUT_CANCEL_PATH,
        )

    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationException("Course ID is required", field="course_id")

        result = self.get_service().create_checkout_session(
            request.user, serializer.validated_data["course_id"]
        )
        return Response({"success": True, "url": result.url}, status=status.HTTP_200_OK)


class StripeWebhookView(APIView):
    """
    Stripe webhook receiver.

    Reads `request.body` only; touching `request.data` would parse the
    payload before the signature check.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def get_reconciler(self) -> WebhookReconciler:
        return WebhookReconciler(get_payment_gateway())

    def post(self, request):
        payload = request.body
        signature = request.META.get("HTTP_STRIPE_SIGNATURE")

        outcome = self.get_reconciler().handle_event(payload, signature)
        return HttpResponse(outcome.message, content_type="text/plain", status=200)


class CourseDetailWithPurchaseStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, course_id):
        course, purchased = course_detail_with_purchase_status(request.user, course_id)
        return Response(
            {"course": CourseSerializer(course).data, "purchased": purchased},
            status=status.HTTP_200_OK,
        )


class PurchasedCoursesView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        purchases = purchased_courses()
        return Response(
            {"purchased_courses": CoursePurchaseSerializer(purchases, many=True).data},
            status=status.HTTP_200_OK,
        )
