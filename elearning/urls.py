"""
E-Learning Application URL Configuration

This module defines the URL routing structure for the E-Learning application.
Each functional area (purchases, progress) has its own URL namespace.

URL Structure:
- /api/elearning/token/: Authentication endpoints (JWT token management)
- /api/elearning/purchases/: Checkout, Stripe webhook and purchase status
- /api/elearning/progress/: Per-user lecture progress

Author: DSP Development Team
Version: 1.0.0
"""

from typing import List

from django.urls import URLPattern, include, path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from .progress import views as progress_views
from .purchases import views as purchase_views

app_name = "elearning"

# --- Purchase URL Patterns ---

purchases_urlpatterns: List[URLPattern] = [
    path(
        "checkout/create-checkout-session/",
        purchase_views.CreateCheckoutSessionView.as_view(),
        name="create-checkout-session",
    ),
    # Stripe calls this endpoint directly (no JWT, signature verified instead)
    path("webhook/", purchase_views.StripeWebhookView.as_view(), name="stripe-webhook"),
    path(
        "course/<int:course_id>/detail-with-status/",
        purchase_views.CourseDetailWithPurchaseStatusView.as_view(),
        name="course-detail-with-status",
    ),
    path("", purchase_views.PurchasedCoursesView.as_view(), name="purchased-courses"),
]

# --- Course Progress URL Patterns ---

progress_urlpatterns: List[URLPattern] = [
    path("<int:course_id>/", progress_views.CourseProgressView.as_view(), name="course-progress"),
    path(
        "<int:course_id>/lecture/<int:lecture_id>/view/",
        progress_views.LectureViewedView.as_view(),
        name="lecture-viewed",
    ),
    path(
        "<int:course_id>/complete/",
        progress_views.MarkCourseCompletedView.as_view(),
        name="mark-completed",
    ),
    path(
        "<int:course_id>/incomplete/",
        progress_views.MarkCourseIncompleteView.as_view(),
        name="mark-incomplete",
    ),
]

# --- Main URL Configuration for E-Learning Application ---

urlpatterns: List[URLPattern] = [
    # Authentication endpoints (JWT token management)
    path("token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("token/verify/", TokenVerifyView.as_view(), name="token_verify"),
    # Functional area URL includes with proper namespacing
    path("purchases/", include((purchases_urlpatterns, "purchases"))),
    path("progress/", include((progress_urlpatterns, "progress"))),
]
