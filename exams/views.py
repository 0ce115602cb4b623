import logging

from rest_framework import viewsets, permissions, filters
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from assessments.permissions import IsTeacherOrAdmin, is_admin
from .models import Exam, Question
from .serializers import (
    ExamSerializer, ExamListSerializer, QuestionSerializer, CandidateQuestionSerializer,
)

logger = logging.getLogger(__name__)


def _is_author(user):
    return is_admin(user) or getattr(user, 'role', '') == 'teacher'


def _owns_exam(user, exam):
    return is_admin(user) or exam.created_by_id == user.id


class ExamViewSet(viewsets.ModelViewSet):
    filter_backends = [filters.SearchFilter]
    search_fields = ['title']

    def get_queryset(self):
        queryset = Exam.objects.all().order_by('-created_at')
        # Students only ever see tests that are open for attempts
        if not _is_author(self.request.user):
            queryset = queryset.filter(is_active=True)
        return queryset

    def get_serializer_class(self):
        if self.action == 'list' and not _is_author(self.request.user):
            return ExamListSerializer
        return ExamSerializer

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'questions']:
            return [permissions.IsAuthenticated()]
        return [IsTeacherOrAdmin()]

    def perform_create(self, serializer):
        exam = serializer.save(created_by=self.request.user)
        logger.info(f"Exam {exam.id} created by user {self.request.user.pk}")

    def perform_update(self, serializer):
        if not _owns_exam(self.request.user, serializer.instance):
            raise PermissionDenied("You can only edit your own tests.")
        serializer.save()

    def perform_destroy(self, instance):
        if not _owns_exam(self.request.user, instance):
            raise PermissionDenied("You can only delete your own tests.")
        instance.delete()

    @action(detail=True, methods=['get'], url_path='questions')
    def questions(self, request, pk=None):
        """Questions of a test in order. Answer keys are only shown to the test's author and admins."""
        exam = self.get_object()
        serializer_class = QuestionSerializer if _owns_exam(request.user, exam) else CandidateQuestionSerializer
        return Response(serializer_class(exam.list_questions(), many=True).data)


class QuestionViewSet(viewsets.ModelViewSet):
    serializer_class = QuestionSerializer
    permission_classes = [IsTeacherOrAdmin]

    filter_backends = [filters.SearchFilter]
    search_fields = ['text']

    def get_queryset(self):
        queryset = Question.objects.select_related('exam').prefetch_related('options').order_by('exam_id', 'sort_order', 'id')
        if not is_admin(self.request.user):
            queryset = queryset.filter(exam__created_by=self.request.user)
        # Filter by Exam if provided ?exam_id=1
        exam_id = self.request.query_params.get('exam_id')
        if exam_id:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset

    def perform_create(self, serializer):
        exam = serializer.validated_data['exam']
        if not _owns_exam(self.request.user, exam):
            raise PermissionDenied("You can only add questions to your own tests.")
        serializer.save()

    def perform_update(self, serializer):
        exam = serializer.validated_data.get('exam', serializer.instance.exam)
        if not _owns_exam(self.request.user, exam):
            logger.warning(
                f"User {self.request.user.pk} tried to move question {serializer.instance.id} to exam {exam.id}"
            )
            raise PermissionDenied("You can only move questions into your own tests.")
        serializer.save()
