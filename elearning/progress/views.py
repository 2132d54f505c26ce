from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import ProgressSnapshotSerializer
from .services import ProgressTracker

# --- Course Progress Views (alle mit User-Kontext) ---


class ProgressTrackerMixin:
    permission_classes = [permissions.IsAuthenticated]
    tracker_class = ProgressTracker

    def get_tracker(self) -> ProgressTracker:
        return self.tracker_class()


class CourseProgressView(ProgressTrackerMixin, APIView):
    def get(self, request, course_id):
        snapshot = self.get_tracker().get_progress(request.user, course_id)
        return Response(
            {"data": ProgressSnapshotSerializer(snapshot).data},
            status=status.HTTP_200_OK,
        )


class LectureViewedView(ProgressTrackerMixin, APIView):
    def post(self, request, course_id, lecture_id):
        self.get_tracker().record_lecture_viewed(request.user, course_id, lecture_id)
        return Response(
            {"message": "Lecture progress updated successfully."},
            status=status.HTTP_200_OK,
        )


class MarkCourseCompletedView(ProgressTrackerMixin, APIView):
    def post(self, request, course_id):
        self.get_tracker().mark_course_completed(request.user, course_id)
        return Response({"message": "Course marked as completed."}, status=status.HTTP_200_OK)


class MarkCourseIncompleteView(ProgressTrackerMixin, APIView):
    def post(self, request, course_id):
        self.get_tracker().mark_course_incomplete(request.user, course_id)
        return Response({"message": "Course marked as incomplete."}, status=status.HTTP_200_OK)
