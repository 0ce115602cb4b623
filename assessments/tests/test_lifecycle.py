from datetime import timedelta
from unittest import mock

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from assessments import lifecycle
from assessments.exceptions import (
    AnswerValidationError,
    AttemptConflict,
    AttemptNotFound,
    ExamNotFound,
    InvalidAttemptState,
)
from assessments.models import TestAttempt
from exams.models import Exam

from .helpers import add_question, make_exam, make_scenario_exam, make_user


class StartAttemptTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user('student@example.com')
        cls.exam, *_ = make_scenario_exam()

    def test_creates_in_progress_attempt(self):
        attempt = lifecycle.start_attempt(self.exam.id, self.student)

        self.assertEqual(attempt.status, TestAttempt.Status.IN_PROGRESS)
        self.assertIsNotNone(attempt.started_at)
        self.assertEqual(attempt.answers, {})
        self.assertIsNone(attempt.score)
        self.assertIsNone(attempt.completed_at)

    def test_second_start_conflicts_with_existing_attempt(self):
        first = lifecycle.start_attempt(self.exam.id, self.student)

        with self.assertRaises(AttemptConflict) as ctx:
            lifecycle.start_attempt(self.exam.id, self.student)

        self.assertEqual(ctx.exception.attempt_id, first.id)
        self.assertEqual(ctx.exception.detail["attempt_id"], first.id)
        self.assertEqual(TestAttempt.objects.filter(exam=self.exam, user=self.student).count(), 1)

    def test_other_users_are_independent(self):
        lifecycle.start_attempt(self.exam.id, self.student)
        other = make_user('other@example.com')
        attempt = lifecycle.start_attempt(self.exam.id, other)
        self.assertEqual(attempt.user, other)

    def test_inactive_exam_is_rejected(self):
        inactive = make_exam(is_active=False)
        with self.assertRaises(InvalidAttemptState):
            lifecycle.start_attempt(inactive.id, self.student)

    def test_missing_exam_is_not_found(self):
        with self.assertRaises(ExamNotFound):
            lifecycle.start_attempt(999999, self.student)

    def test_new_attempt_allowed_after_completion(self):
        first = lifecycle.start_attempt(self.exam.id, self.student)
        lifecycle.complete_attempt(first.id)

        second = lifecycle.start_attempt(self.exam.id, self.student)
        self.assertNotEqual(first.id, second.id)

    def test_racing_insert_is_reported_as_conflict(self):
        existing = TestAttempt.objects.create(exam=self.exam, user=self.student)

        # Simulate the existence check running before the other request committed
        with mock.patch.object(lifecycle, '_in_progress_for', side_effect=[None, existing]):
            with self.assertRaises(AttemptConflict) as ctx:
                lifecycle.start_attempt(self.exam.id, self.student)

        self.assertEqual(ctx.exception.attempt_id, existing.id)

    def test_exam_row_is_not_locked_on_start(self):
        with mock.patch.object(Exam.objects, 'select_for_update') as select_for_update:
            lifecycle.start_attempt(self.exam.id, self.student)

        select_for_update.assert_not_called()


class SingleInProgressConstraintTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user('student@example.com')
        cls.exam = make_exam()

    def test_database_rejects_second_in_progress_attempt(self):
        TestAttempt.objects.create(exam=self.exam, user=self.student)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                TestAttempt.objects.create(exam=self.exam, user=self.student)

    def test_completed_attempts_do_not_count(self):
        TestAttempt.objects.create(exam=self.exam, user=self.student, status=TestAttempt.Status.COMPLETED)
        TestAttempt.objects.create(exam=self.exam, user=self.student, status=TestAttempt.Status.COMPLETED)
        TestAttempt.objects.create(exam=self.exam, user=self.student)

        self.assertEqual(TestAttempt.objects.filter(exam=self.exam, user=self.student).count(), 3)


class SubmitAnswersTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user('student@example.com')
        cls.exam, cls.mcq, cls.true_false, cls.fill_blank = make_scenario_exam()

    def setUp(self):
        self.attempt = lifecycle.start_attempt(self.exam.id, self.student)

    def test_answers_are_merged(self):
        lifecycle.submit_answers(self.attempt.id, {str(self.mcq.id): ["b"]})
        attempt = lifecycle.submit_answers(self.attempt.id, {str(self.true_false.id): True})

        self.assertEqual(attempt.answers, {str(self.mcq.id): ["b"], str(self.true_false.id): True})
        attempt.refresh_from_db()
        self.assertEqual(attempt.status, TestAttempt.Status.IN_PROGRESS)
        self.assertIsNone(attempt.score)
        self.assertEqual(attempt.results, {})

    def test_later_answer_replaces_earlier(self):
        lifecycle.submit_answers(self.attempt.id, {str(self.fill_blank.id): "41"})
        attempt = lifecycle.submit_answers(self.attempt.id, {str(self.fill_blank.id): "42"})
        self.assertEqual(attempt.answers[str(self.fill_blank.id)], "42")

    def test_null_clears_an_answer(self):
        lifecycle.submit_answers(self.attempt.id, {str(self.fill_blank.id): "42"})
        attempt = lifecycle.submit_answers(self.attempt.id, {str(self.fill_blank.id): None})
        self.assertNotIn(str(self.fill_blank.id), attempt.answers)

    def test_question_from_another_exam_is_rejected(self):
        other_exam = make_exam(title='Other')
        foreign = add_question(other_exam, 'true_false', 1, correct_answer=True)

        with self.assertRaises(InvalidAttemptState):
            lifecycle.submit_answers(self.attempt.id, {str(foreign.id): True})

    def test_non_numeric_question_id_is_rejected(self):
        with self.assertRaises(InvalidAttemptState):
            lifecycle.submit_answers(self.attempt.id, {"abc": True})

    def test_wrong_shape_is_rejected(self):
        with self.assertRaises(AnswerValidationError):
            lifecycle.submit_answers(self.attempt.id, {str(self.mcq.id): True})

        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.answers, {})

    def test_completed_attempt_rejects_answers(self):
        lifecycle.complete_attempt(self.attempt.id)
        with self.assertRaises(InvalidAttemptState):
            lifecycle.submit_answers(self.attempt.id, {str(self.true_false.id): True})

    def test_missing_attempt(self):
        with self.assertRaises(AttemptNotFound):
            lifecycle.submit_answers(999999, {})


class CompleteAttemptTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user('student@example.com')
        cls.exam, cls.mcq, cls.true_false, cls.fill_blank = make_scenario_exam()

    def setUp(self):
        self.attempt = lifecycle.start_attempt(self.exam.id, self.student)

    def scenario_answers(self):
        return {
            str(self.mcq.id): ["b"],
            str(self.true_false.id): True,
            str(self.fill_blank.id): "42",
        }

    def test_scenario_is_graded_and_frozen(self):
        lifecycle.submit_answers(self.attempt.id, self.scenario_answers())
        lifecycle.complete_attempt(self.attempt.id)

        attempt = TestAttempt.objects.get(pk=self.attempt.id)
        self.assertEqual(attempt.status, TestAttempt.Status.COMPLETED)
        self.assertEqual(attempt.score, 50)
        self.assertTrue(attempt.passed)
        self.assertEqual(attempt.total_points, 10)
        self.assertEqual(attempt.correct_points, 6)
        self.assertEqual(attempt.negative_points, 1)
        self.assertEqual(attempt.final_points, 5)
        self.assertIsNotNone(attempt.completed_at)
        self.assertEqual(
            attempt.results[str(self.mcq.id)],
            {"correct": False, "answered": True, "points": -1, "possiblePoints": 4},
        )

    def test_late_answers_are_merged_before_grading(self):
        lifecycle.submit_answers(self.attempt.id, {str(self.true_false.id): True})
        attempt = lifecycle.complete_attempt(self.attempt.id, answers={str(self.fill_blank.id): "42"})

        self.assertEqual(attempt.score, 60)
        self.assertFalse(attempt.results[str(self.mcq.id)]["answered"])

    def test_empty_attempt_scores_zero(self):
        attempt = lifecycle.complete_attempt(self.attempt.id)
        self.assertEqual(attempt.score, 0)
        self.assertFalse(attempt.passed)
        self.assertEqual(len(attempt.results), 3)

    def test_repeat_completion_is_a_no_op(self):
        first = lifecycle.complete_attempt(self.attempt.id, answers=self.scenario_answers())
        second = lifecycle.complete_attempt(
            self.attempt.id,
            answers={str(self.mcq.id): ["a"]},
            completed_at=timezone.now() + timedelta(hours=1),
        )

        self.assertEqual(second.score, first.score)
        self.assertEqual(second.results, first.results)
        self.assertEqual(second.completed_at, first.completed_at)
        self.assertEqual(second.answers, first.answers)

    def test_supplied_completion_time_is_used(self):
        when = timezone.now() - timedelta(minutes=5)
        attempt = lifecycle.complete_attempt(self.attempt.id, completed_at=when)
        self.assertEqual(attempt.completed_at, when)

    def test_zero_question_exam(self):
        empty = make_exam(title='Empty')
        attempt = lifecycle.start_attempt(empty.id, self.student)
        attempt = lifecycle.complete_attempt(attempt.id)

        self.assertEqual(attempt.score, 0)
        self.assertEqual(attempt.total_points, 0)
        self.assertEqual(attempt.results, {})

    def test_negative_score_is_stored(self):
        exam = make_exam(title='Harsh')
        question = add_question(exam, 'true_false', 10, 20, correct_answer=True)
        attempt = lifecycle.start_attempt(exam.id, self.student)
        attempt = lifecycle.complete_attempt(attempt.id, answers={str(question.id): False})

        self.assertEqual(attempt.final_points, -20)
        self.assertEqual(attempt.score, -200)
        self.assertFalse(attempt.passed)


class FinalizeOverdueAttemptsTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_user('student@example.com')
        cls.other = make_user('other@example.com')
        cls.exam, cls.mcq, cls.true_false, cls.fill_blank = make_scenario_exam(duration_minutes=30)

    def setUp(self):
        self.overdue = lifecycle.start_attempt(self.exam.id, self.student)
        lifecycle.submit_answers(self.overdue.id, {str(self.true_false.id): True})
        TestAttempt.objects.filter(pk=self.overdue.id).update(started_at=timezone.now() - timedelta(hours=2))
        self.current = lifecycle.start_attempt(self.exam.id, self.other)

    def test_only_overdue_attempts_are_completed(self):
        finalized = lifecycle.finalize_overdue_attempts()

        self.assertEqual(finalized, [self.overdue.id])
        self.overdue.refresh_from_db()
        self.current.refresh_from_db()
        self.assertEqual(self.overdue.status, TestAttempt.Status.COMPLETED)
        self.assertEqual(self.overdue.score, 20)
        self.assertEqual(self.overdue.completed_at, self.overdue.due_at)
        self.assertEqual(self.current.status, TestAttempt.Status.IN_PROGRESS)

    def test_dry_run_changes_nothing(self):
        finalized = lifecycle.finalize_overdue_attempts(dry_run=True)

        self.assertEqual(finalized, [self.overdue.id])
        self.overdue.refresh_from_db()
        self.assertEqual(self.overdue.status, TestAttempt.Status.IN_PROGRESS)

    def test_time_remaining(self):
        self.overdue.refresh_from_db()
        self.assertEqual(self.overdue.time_remaining_seconds(), 0)
        self.assertGreater(self.current.time_remaining_seconds(), 0)

    def test_failing_attempt_does_not_stop_the_batch(self):
        TestAttempt.objects.filter(pk=self.current.id).update(started_at=timezone.now() - timedelta(hours=1))
        complete = lifecycle.complete_attempt

        def fail_for_overdue(attempt_id, **kwargs):
            if attempt_id == self.overdue.id:
                raise RuntimeError("database hiccup")
            return complete(attempt_id, **kwargs)

        with mock.patch.object(lifecycle, 'complete_attempt', side_effect=fail_for_overdue):
            with self.assertLogs('assessments.lifecycle', level='ERROR'):
                finalized = lifecycle.finalize_overdue_attempts()

        self.assertEqual(finalized, [self.current.id])
        self.overdue.refresh_from_db()
        self.current.refresh_from_db()
        self.assertEqual(self.overdue.status, TestAttempt.Status.IN_PROGRESS)
        self.assertEqual(self.current.status, TestAttempt.Status.COMPLETED)
