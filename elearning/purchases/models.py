"""
E-Learning Purchase Models

Models:
- CoursePurchase: One checkout attempt of a user for a course

State machine:
    pending ──(checkout.session.completed)──> completed
    pending ──(second paid session for an owned course)──> failed

A purchase is created `pending` once the gateway returned a session and
is never deleted. `payment_session_id` is the join key for webhook
correlation. The database enforces at most one completed purchase per
user and course.

Author: DSP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from ..courses.models import Course


class CoursePurchase(models.Model):
    """
    Purchase record and source of truth for payment state.

    Attributes:
        course: Purchased course
        user: Buyer
        amount: Charged amount (course price at checkout, replaced by the
            gateway's authoritative total on completion)
        status: pending / completed / failed
        payment_session_id: Gateway checkout session id
        entitlements_granted_at: Set once enrollment and lecture unlock ran
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")

    course = models.ForeignKey(
        Course,
        on_delete=models.PROTECT,
        related_name="purchases",
        verbose_name=_("Course"),
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="course_purchases",
        verbose_name=_("User"),
    )

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        verbose_name=_("Amount"),
    )

    currency = models.CharField(
        max_length=3,
        default="eur",
        verbose_name=_("Currency"),
    )

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
        verbose_name=_("Status"),
    )

    payment_session_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        verbose_name=_("Payment Session ID"),
        help_text=_("Stripe Checkout Session id (cs_...)"),
    )

    payment_intent_id = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_("Payment Intent ID"),
    )

    failure_reason = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_("Failure Reason"),
    )

    completed_at = models.DateTimeField(null=True, blank=True)

    entitlements_granted_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Entitlements Granted At"),
        help_text=_("Empty for a completed purchase means enrollment still has to run"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.user} - {self.course} ({self.status})"

    class Meta:
        verbose_name = _("Course Purchase")
        verbose_name_plural = _("Course Purchases")
        ordering = ["-created_at"]
        db_table = "elearning_course_purchase"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "course"],
                condition=Q(status="completed"),
                name="unique_completed_purchase_per_user_course",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user", "course", "status"], name="purchase_user_course_status"
            ),
        ]

    @property
    def is_completed(self) -> bool:
        return self.status == self.Status.COMPLETED
