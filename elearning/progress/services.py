"""
Course Progress Service

Records "lecture viewed" events and derives course completion.

Concurrency:
    Every write runs inside `transaction.atomic()` with the user's
    CourseProgress row locked via `select_for_update()`. Two simultaneous
    lecture-viewed events for the same course therefore recompute
    `completed` one after the other, each seeing the other's entry.

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import NotFoundException

from ..courses.models import Course, Lecture
from .models import CourseProgress, LectureProgress

logger = logging.getLogger(__name__)


@dataclass
class ProgressSnapshot:
    course: Course
    progress: List[Dict[str, Any]] = field(default_factory=list)
    completed: bool = False


def _get_course(course_id: Any) -> Course:
    try:
        return Course.objects.get(pk=course_id)
    except (Course.DoesNotExist, ValueError, TypeError):
        raise NotFoundException("Course not found", resource="course")


class ProgressTracker:
    """Per-user lecture progress for a course."""

    def get_progress(self, user, course_id: Any) -> ProgressSnapshot:
        """
        Read the user's progress without creating anything.

        Returns an empty progress list and `completed=False` when the
        user has not viewed any lecture yet.
        """
        try:
            course = (
                Course.objects.select_related("creator")
                .prefetch_related("lectures")
                .get(pk=course_id)
            )
        except (Course.DoesNotExist, ValueError, TypeError):
            raise NotFoundException("Course not found", resource="course")

        course_progress = CourseProgress.objects.filter(user=user, course=course).first()
        if course_progress is None:
            return ProgressSnapshot(course=course)

        entries = [
            {"lecture_id": entry.lecture_id, "viewed": entry.viewed}
            for entry in course_progress.lecture_progress.all()
        ]
        return ProgressSnapshot(
            course=course, progress=entries, completed=course_progress.completed
        )

    def record_lecture_viewed(self, user, course_id: Any, lecture_id: Any) -> CourseProgress:
        """
        Mark a lecture as viewed and recompute course completion.

        Creates the CourseProgress record on the first call. Repeated calls
        for the same lecture keep a single viewed entry.

        Raises:
            NotFoundException: Unknown course, or lecture not part of it
        """
        course = _get_course(course_id)
        try:
            lecture = Lecture.objects.get(pk=lecture_id, course=course)
        except (Lecture.DoesNotExist, ValueError, TypeError):
            raise NotFoundException("Lecture not found", resource="lecture")

        with transaction.atomic():
            course_progress = self._lock_or_create(user, course)

            entry, created = LectureProgress.objects.get_or_create(
                course_progress=course_progress,
                lecture=lecture,
                defaults={"viewed": True, "viewed_at": timezone.now()},
            )
            if not created and not entry.viewed:
                entry.viewed = True
                entry.viewed_at = timezone.now()
                entry.save(update_fields=["viewed", "viewed_at"])

            viewed_count = course_progress.lecture_progress.filter(viewed=True).count()
            completed = viewed_count == course.lectures.count()

            if completed != course_progress.completed:
                course_progress.completed = completed
                course_progress.save(update_fields=["completed", "updated_at"])
                if completed:
                    logger.info("User %s completed course %s.", user.pk, course.pk)

        return course_progress

    def mark_course_completed(self, user, course_id: Any) -> CourseProgress:
        return self._set_all_viewed(user, course_id, viewed=True)

    def mark_course_incomplete(self, user, course_id: Any) -> CourseProgress:
        return self._set_all_viewed(user, course_id, viewed=False)

    def _set_all_viewed(self, user, course_id: Any, *, viewed: bool) -> CourseProgress:
        """
        Flip every existing lecture entry and the completed flag.

        Only existing records are changed; without prior progress this is
        a NotFound, not a creation.
        """
        with transaction.atomic():
            course_progress = (
                CourseProgress.objects.select_for_update()
                .filter(user=user, course_id=course_id)
                .first()
            )
            if course_progress is None:
                raise NotFoundException("Course progress not found", resource="course_progress")

            course_progress.lecture_progress.update(
                viewed=viewed, viewed_at=timezone.now() if viewed else None
            )
            course_progress.completed = viewed
            course_progress.save(update_fields=["completed", "updated_at"])

        logger.info(
            "User %s marked course %s as %s.",
            user.pk,
            course_id,
            "completed" if viewed else "incomplete",
        )
        return course_progress

    @staticmethod
    def _lock_or_create(user, course: Course) -> CourseProgress:
        """Return the user's locked CourseProgress row, creating it if needed."""
        course_progress = (
            CourseProgress.objects.select_for_update()
            .filter(user=user, course=course)
            .first()
        )
        if course_progress is not None:
            return course_progress

        try:
            with transaction.atomic():
                course_progress = CourseProgress.objects.create(
                    user=user, course=course, completed=False
                )
        except IntegrityError:
            # created concurrently by another request
            course_progress = CourseProgress.objects.select_for_update().get(
                user=user, course=course
            )
        return course_progress
