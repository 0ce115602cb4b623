"""
Attempt lifecycle: start, answer, complete.

An attempt is ``in_progress`` from creation until a completion request grades
it and freezes the score, after which it is ``completed`` for good. At most
one in-progress attempt may exist per (exam, user); the database backs the
check below with a partial unique constraint, so racing requests end in
``AttemptConflict`` rather than a second attempt. The exam row is not locked,
so a whole cohort can start the same test at once.
"""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from exams.models import Exam

from .exceptions import AnswerValidationError, AttemptConflict, AttemptNotFound, ExamNotFound, InvalidAttemptState
from .grading import grade, normalize_submission
from .grading.answer_keys import to_json_value
from .models import TestAttempt

logger = logging.getLogger(__name__)


def _in_progress_for(exam, user):
    return TestAttempt.objects.filter(exam=exam, user=user, status=TestAttempt.Status.IN_PROGRESS).first()


def _locked_attempt(attempt_id):
    try:
        return (
            TestAttempt.objects.select_for_update(of=('self',))
            .select_related('exam')
            .get(pk=attempt_id)
        )
    except (TestAttempt.DoesNotExist, ValueError, TypeError):
        raise AttemptNotFound()


def start_attempt(exam_id, user):
    with transaction.atomic():
        try:
            exam = Exam.objects.get(pk=exam_id)
        except (Exam.DoesNotExist, ValueError, TypeError):
            raise ExamNotFound()

        if not exam.is_active:
            raise InvalidAttemptState("Test is not active.")

        existing = _in_progress_for(exam, user)
        if existing:
            raise AttemptConflict(existing.id)

        try:
            with transaction.atomic():
                attempt = TestAttempt.objects.create(exam=exam, user=user)
        except IntegrityError:
            # Lost the race against a concurrent start for the same pair
            existing = _in_progress_for(exam, user)
            if existing is None:
                raise
            raise AttemptConflict(existing.id)

    logger.info(f"Attempt {attempt.id} started on exam {exam.id} by user {user.pk}")
    return attempt


def _merge_answers(attempt, answers, questions_by_id):
    if not isinstance(answers, dict):
        raise AnswerValidationError({"answers": ["Expected an object mapping question ids to answers."]})

    merged = dict(attempt.answers or {})
    for raw_id, value in answers.items():
        try:
            question = questions_by_id[int(raw_id)]
        except (KeyError, ValueError, TypeError):
            raise InvalidAttemptState(f"Question {raw_id} does not belong to this test.")

        submission = normalize_submission(question.question_type, value, question.id)
        if submission is None:
            merged.pop(str(question.id), None)
        else:
            merged[str(question.id)] = to_json_value(submission)
    attempt.answers = merged


def submit_answers(attempt_id, answers):
    """Merge answers into an in-progress attempt. Nothing is graded here."""
    with transaction.atomic():
        attempt = _locked_attempt(attempt_id)
        if attempt.is_completed:
            raise InvalidAttemptState("Answers can only be submitted while the attempt is in progress.")

        questions_by_id = {q.id: q for q in attempt.exam.list_questions()}
        _merge_answers(attempt, answers, questions_by_id)
        attempt.save(update_fields=['answers'])
    return attempt


def _stored_submission(question, raw):
    try:
        return normalize_submission(question.question_type, raw, question.id)
    except AnswerValidationError:
        logger.warning(
            f"Stored answer for question {question.id} no longer fits its type; grading it as unanswered"
        )
        return None


def complete_attempt(attempt_id, answers=None, completed_at=None):
    """
    Grade and freeze an attempt.

    Completing an attempt that is already completed returns it untouched:
    results, score and ``completed_at`` are never recomputed.
    """
    with transaction.atomic():
        attempt = _locked_attempt(attempt_id)
        if attempt.is_completed:
            logger.info(f"Attempt {attempt.id} already completed; returning stored result")
            return attempt

        questions = list(attempt.exam.list_questions())
        if answers:
            _merge_answers(attempt, answers, {q.id: q for q in questions})

        submissions = {
            str(q.id): _stored_submission(q, attempt.answers.get(str(q.id)))
            for q in questions
        }
        sheet = grade([q.to_gradable() for q in questions], submissions)

        attempt.results = sheet.results
        attempt.total_points = sheet.total_points
        attempt.correct_points = sheet.correct_points
        attempt.negative_points = sheet.negative_points
        attempt.final_points = sheet.final_points
        attempt.score = sheet.score
        attempt.passed = sheet.score >= attempt.exam.passing_score
        attempt.completed_at = completed_at or timezone.now()
        attempt.status = TestAttempt.Status.COMPLETED
        attempt.save()

    logger.info(
        f"Attempt {attempt.id} completed: score={attempt.score} "
        f"final_points={attempt.final_points}/{attempt.total_points}"
    )
    return attempt


def finalize_overdue_attempts(now=None, dry_run=False):
    """
    Complete every in-progress attempt whose exam duration has run out.

    Returns the ids of the attempts that were (or, with ``dry_run``, would be)
    completed.
    """
    now = now or timezone.now()
    overdue = [
        attempt
        for attempt in TestAttempt.objects.filter(status=TestAttempt.Status.IN_PROGRESS).select_related('exam')
        if attempt.due_at is not None and attempt.due_at <= now
    ]

    finalized = []
    for attempt in overdue:
        if not dry_run:
            try:
                complete_attempt(attempt.id, completed_at=attempt.due_at)
            except Exception:
                # One broken attempt must not leave the rest of the batch open
                logger.exception(f"Failed to finalize overdue attempt {attempt.id}")
                continue
        finalized.append(attempt.id)
    return finalized
