from rest_framework import serializers

from .models import Course, Lecture


class LectureSerializer(serializers.ModelSerializer):
    class Meta:
        model = Lecture
        fields = ["id", "title", "video_url", "order", "is_preview_free"]


class CourseSerializer(serializers.ModelSerializer):
    """Course document including its ordered lectures and creator name."""

    lectures = LectureSerializer(many=True, read_only=True)
    creator = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = [
            "id",
            "title",
            "subtitle",
            "description",
            "category",
            "level",
            "price",
            "thumbnail",
            "creator",
            "is_published",
            "lectures",
        ]

    def get_creator(self, obj):
        if obj.creator is None:
            return None
        return {"id": obj.creator.id, "username": obj.creator.get_username()}


class CourseSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ["id", "title", "price", "thumbnail"]
