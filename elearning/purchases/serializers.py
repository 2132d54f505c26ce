from rest_framework import serializers

from ..courses.serializers import CourseSummarySerializer
from .models import CoursePurchase


class CheckoutRequestSerializer(serializers.Serializer):
    course_id = serializers.IntegerField(min_value=1)


class CoursePurchaseSerializer(serializers.ModelSerializer):
    course = CourseSummarySerializer(read_only=True)
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = CoursePurchase
        fields = [
            "id",
            "course",
            "user_id",
            "amount",
            "currency",
            "status",
            "payment_session_id",
            "completed_at",
            "created_at",
        ]
