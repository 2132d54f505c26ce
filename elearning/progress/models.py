"""
E-Learning Course Progress Models

Models:
- CourseProgress: Per-user progress through one course
- LectureProgress: Viewed flag of one lecture within a CourseProgress

A CourseProgress row is created lazily on the first "lecture viewed"
event. `completed` is recomputed whenever a lecture is marked viewed and
is true when the number of viewed entries equals the course's lecture count.

Known limitation:
    The recompute compares counts, not lecture ids. Adding or removing
    lectures after progress began is only reflected on the next
    recompute, so a previously completed course may report a completion
    state that no longer matches its lecture list.

Author: DSP Development Team
Version: 1.0.0
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from ..courses.models import Course, Lecture


class CourseProgress(models.Model):
    """
    Source of truth for a user's viewing state in a course.

    Attributes:
        user: Learner
        course: Course being followed
        completed: True iff every lecture has a viewed entry
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="course_progress",
        verbose_name=_("User"),
    )

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="progress_entries",
        verbose_name=_("Course"),
    )

    completed = models.BooleanField(
        default=False,
        verbose_name=_("Completed"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        state = _("Completed") if self.completed else _("In Progress")
        return f"{self.user} - {self.course} ({state})"

    class Meta:
        verbose_name = _("Course Progress")
        verbose_name_plural = _("Course Progress Entries")
        unique_together = ("user", "course")
        db_table = "elearning_course_progress"


class LectureProgress(models.Model):
    """Viewed flag for a single lecture, ordered by first view."""

    course_progress = models.ForeignKey(
        CourseProgress,
        on_delete=models.CASCADE,
        related_name="lecture_progress",
        verbose_name=_("Course Progress"),
    )

    lecture = models.ForeignKey(
        Lecture,
        on_delete=models.CASCADE,
        related_name="progress_entries",
        verbose_name=_("Lecture"),
    )

    viewed = models.BooleanField(
        default=False,
        verbose_name=_("Viewed"),
    )

    viewed_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.course_progress} - {self.lecture.title} (viewed={self.viewed})"

    class Meta:
        verbose_name = _("Lecture Progress")
        verbose_name_plural = _("Lecture Progress Entries")
        unique_together = ("course_progress", "lecture")
        ordering = ["course_progress", "id"]
        db_table = "elearning_lecture_progress"
