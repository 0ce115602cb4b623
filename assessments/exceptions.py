"""
Typed failures raised by the attempt lifecycle.

Every class here is a DRF ``APIException`` so the default exception handler
renders it with the right status code; callers outside the HTTP layer can
still catch them individually.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError


class ExamNotFound(NotFound):
    default_detail = "Test not found."
    default_code = "exam_not_found"


class AttemptNotFound(NotFound):
    default_detail = "Test attempt not found."
    default_code = "attempt_not_found"


class AttemptConflict(APIException):
    """An in-progress attempt already exists for this exam and user."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "You already have an in-progress attempt for this test."
    default_code = "attempt_in_progress"

    def __init__(self, attempt_id, detail=None):
        self.attempt_id = attempt_id
        super().__init__(detail=detail)
        # Surface the existing attempt so the client can resume it
        self.detail = {
            "detail": self.detail,
            "attempt_id": attempt_id,
        }


class InvalidAttemptState(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The attempt cannot be changed in its current state."
    default_code = "invalid_state"


class AnswerValidationError(ValidationError):
    default_detail = "Submitted answer does not match the question type."
    default_code = "invalid_answer"
