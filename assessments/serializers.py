from rest_framework import serializers

from exams.serializers import ExamListSerializer
from .models import TestAttempt


class TestAttemptSerializer(serializers.ModelSerializer):
    exam = ExamListSerializer(read_only=True)
    exam_id = serializers.IntegerField(source='exam.id', read_only=True)
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    time_remaining_seconds = serializers.SerializerMethodField()

    class Meta:
        model = TestAttempt
        fields = [
            'id', 'exam_id', 'user_id', 'exam', 'status', 'started_at', 'completed_at',
            'time_remaining_seconds', 'answers', 'results', 'score', 'passed',
            'total_points', 'correct_points', 'negative_points', 'final_points',
        ]
        read_only_fields = fields

    def get_time_remaining_seconds(self, obj):
        return obj.time_remaining_seconds()


class StartAttemptSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()


class UpdateAttemptSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TestAttempt.Status.choices, required=False)
    answers = serializers.DictField(child=serializers.JSONField(allow_null=True), required=False)
    completed_at = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if 'status' not in attrs and 'answers' not in attrs:
            raise serializers.ValidationError("Provide 'answers' and/or 'status'.")
        return attrs
