"""
E-Learning Course Catalogue Models

This module defines the catalogue models the purchase and progress flows
read from. Course authoring itself happens through the admin; the purchase
flow only reads price, title, thumbnail and lectures and adds students.

Models:
- Course: Sellable course with price and enrolled students
- Lecture: Ordered lecture within a course with preview access flag

Enrollment:
    `Course.enrolled_students` is a many-to-many relation to the user model
    with the reverse accessor `enrolled_courses`. Adding a user to a course
    therefore updates both sides in a single idempotent insert.

Author: DSP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Course(models.Model):
    """
    Sellable course.

    Attributes:
        title: Course title shown on the checkout page
        price: Price in DEFAULT_CURRENCY
        thumbnail: Optional image URL shown on the checkout page
        creator: Author of the course
        enrolled_students: Users with a completed purchase

    Example:
        >>> course = Course.objects.create(title="Django Basics", price=Decimal("49.00"))
        >>> course.lectures.count()
        0
    """

    class Level(models.TextChoices):
        BEGINNER = "beginner", _("Beginner")
        MEDIUM = "medium", _("Medium")
        ADVANCED = "advanced", _("Advanced")

    title = models.CharField(
        max_length=200,
        verbose_name=_("Course Title"),
        help_text=_("Title shown in the catalogue and on the checkout page"),
    )

    subtitle = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_("Subtitle"),
    )

    description = models.TextField(
        blank=True,
        verbose_name=_("Description"),
    )

    category = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_("Category"),
    )

    level = models.CharField(
        max_length=20,
        choices=Level.choices,
        default=Level.BEGINNER,
        verbose_name=_("Level"),
    )

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        verbose_name=_("Price"),
        help_text=_("Price charged at checkout"),
    )

    thumbnail = models.CharField(
        max_length=500,
        blank=True,
        verbose_name=_("Thumbnail URL"),
    )

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_courses",
        verbose_name=_("Creator"),
    )

    is_published = models.BooleanField(
        default=False,
        verbose_name=_("Published"),
    )

    enrolled_students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="enrolled_courses",
        verbose_name=_("Enrolled Students"),
        help_text=_("Users with a completed purchase of this course"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.title

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["-created_at"]
        db_table = "elearning_course"


class Lecture(models.Model):
    """
    Lecture within a course.

    `is_preview_free` marks lectures viewable without a purchase. A
    completed purchase unlocks every lecture of the course.
    """

    course = models.ForeignKey(
        Course,
        related_name="lectures",
        on_delete=models.CASCADE,
        verbose_name=_("Course"),
    )

    title = models.CharField(
        max_length=255,
        verbose_name=_("Lecture Title"),
    )

    video_url = models.CharField(
        max_length=500,
        blank=True,
        verbose_name=_("Video URL"),
    )

    order = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Display Order"),
        help_text=_("Order of lectures within the course (0 = first)"),
    )

    is_preview_free = models.BooleanField(
        default=False,
        verbose_name=_("Free Preview"),
        help_text=_("Viewable without purchasing the course"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.course.title} - {self.title}"

    class Meta:
        verbose_name = _("Lecture")
        verbose_name_plural = _("Lectures")
        ordering = ["course", "order", "id"]
        db_table = "elearning_lecture"
