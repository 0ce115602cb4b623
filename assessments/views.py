import logging

from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from exams.models import Exam
from . import lifecycle
from .exceptions import InvalidAttemptState
from .models import TestAttempt
from .permissions import CanAccessAttempt, is_admin
from .serializers import StartAttemptSerializer, TestAttemptSerializer, UpdateAttemptSerializer

logger = logging.getLogger(__name__)


def _int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: "Must be an integer."})


class TestAttemptViewSet(viewsets.GenericViewSet):
    """
    Learner test attempts.

    POST creates an in-progress attempt, PUT/PATCH merges answers and, with
    ``{"status": "completed"}``, grades and freezes the attempt.
    """
    queryset = TestAttempt.objects.select_related('exam', 'user')
    serializer_class = TestAttemptSerializer
    permission_classes = [permissions.IsAuthenticated, CanAccessAttempt]

    def list(self, request):
        user = request.user
        queryset = self.get_queryset()
        exam_id = _int_param(request, 'exam_id')

        if is_admin(user):
            if exam_id is not None:
                queryset = queryset.filter(exam=get_object_or_404(Exam, id=exam_id))
            else:
                queryset = queryset.filter(user_id=_int_param(request, 'user_id') or user.id)
        elif getattr(user, 'role', '') == 'teacher':
            if exam_id is None:
                return Response({"error": "Test ID is required"}, status=status.HTTP_400_BAD_REQUEST)
            exam = get_object_or_404(Exam, id=exam_id)
            if exam.created_by_id != user.id:
                raise PermissionDenied("You can only view attempts for your own tests.")
            queryset = queryset.filter(exam=exam)
        else:
            # Students can only see their own attempts
            queryset = queryset.filter(user=user)

        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    def retrieve(self, request, pk=None):
        attempt = self.get_object()
        return Response(self.get_serializer(attempt).data)

    def create(self, request):
        payload = StartAttemptSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        attempt = lifecycle.start_attempt(payload.validated_data['exam_id'], request.user)
        return Response(self.get_serializer(attempt).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        attempt = self.get_object()
        payload = UpdateAttemptSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        new_status = data.get('status')
        answers = data.get('answers')

        if new_status == TestAttempt.Status.COMPLETED:
            attempt = lifecycle.complete_attempt(
                attempt.id, answers=answers, completed_at=data.get('completed_at')
            )
        elif attempt.is_completed:
            logger.warning(f"Rejected change to completed attempt {attempt.id} by user {request.user.pk}")
            raise InvalidAttemptState("This attempt is already completed.")
        elif answers is not None:
            attempt = lifecycle.submit_answers(attempt.id, answers)

        return Response(self.get_serializer(attempt).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)
