from rest_framework import serializers

from ..courses.serializers import CourseSerializer


class LectureProgressEntrySerializer(serializers.Serializer):
    lecture_id = serializers.IntegerField()
    viewed = serializers.BooleanField()


class ProgressSnapshotSerializer(serializers.Serializer):
    """Serializes a ProgressSnapshot into the `data` payload of the progress endpoint."""

    course_details = CourseSerializer(source="course")
    progress = LectureProgressEntrySerializer(many=True)
    completed = serializers.BooleanField()
