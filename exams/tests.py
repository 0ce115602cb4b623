from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from assessments.grading import BooleanKey, McqKey, TextKey
from assessments.tests.helpers import add_question, make_exam, make_scenario_exam, make_user
from exams.models import Question


class AnswerKeyFromCatalogTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.exam, cls.mcq, cls.true_false, cls.fill_blank = make_scenario_exam()

    def test_mcq_key_comes_from_flagged_options(self):
        question = add_question(self.exam, 'mcq', 1, options={'a': True, 'b': False, 'c': True})
        self.assertEqual(question.answer_key(), McqKey(frozenset({'a', 'c'})))

    def test_other_keys_come_from_correct_answer(self):
        self.assertEqual(self.true_false.answer_key(), BooleanKey(True))
        self.assertEqual(self.fill_blank.answer_key(), TextKey(('42',)))

    def test_gradable_question_carries_points(self):
        gradable = self.mcq.to_gradable()
        self.assertEqual(gradable.id, self.mcq.id)
        self.assertEqual(gradable.points, Decimal('4'))
        self.assertEqual(gradable.negative_points, Decimal('1'))

    def test_list_questions_is_ordered(self):
        ids = [q.id for q in self.exam.list_questions()]
        self.assertEqual(ids, [self.mcq.id, self.true_false.id, self.fill_blank.id])


class QuestionAuthoringTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.teacher = make_user('teacher@example.com', role='teacher')
        cls.exam = make_exam(
            created_by=cls.teacher,
            default_points=Decimal('2.5'),
            default_negative_points=Decimal('0.5'),
        )

    def setUp(self):
        self.client.force_authenticate(self.teacher)

    def test_points_default_to_exam_settings(self):
        response = self.client.post('/api/questions/', {
            'exam': self.exam.id,
            'text': 'Capital of France?',
            'question_type': 'fill_blank',
            'correct_answer': 'Paris',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        question = Question.objects.get(pk=response.data['id'])
        self.assertEqual(question.points, Decimal('2.5'))
        self.assertEqual(question.negative_points, Decimal('0.5'))

    def test_mcq_with_options(self):
        response = self.client.post('/api/questions/', {
            'exam': self.exam.id,
            'text': 'Pick the primes',
            'question_type': 'mcq',
            'points': '3',
            'options': [
                {'key': 'a', 'text': '2', 'is_correct': True},
                {'key': 'b', 'text': '4', 'is_correct': False},
                {'key': 'c', 'text': '5', 'is_correct': True},
            ],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        question = Question.objects.get(pk=response.data['id'])
        self.assertEqual(question.answer_key(), McqKey(frozenset({'a', 'c'})))

    def test_mcq_needs_a_correct_option(self):
        response = self.client.post('/api/questions/', {
            'exam': self.exam.id,
            'text': 'Pick one',
            'question_type': 'mcq',
            'options': [{'key': 'a', 'text': 'x', 'is_correct': False}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_true_false_needs_boolean_answer(self):
        response = self.client.post('/api/questions/', {
            'exam': self.exam.id,
            'text': 'The sky is blue.',
            'question_type': 'true_false',
            'correct_answer': 'yes',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_points_are_rejected(self):
        response = self.client.post('/api/questions/', {
            'exam': self.exam.id,
            'text': 'The sky is blue.',
            'question_type': 'true_false',
            'correct_answer': True,
            'negative_points': '-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_students_cannot_author(self):
        self.client.force_authenticate(make_user('student@example.com'))
        response = self.client.post('/api/questions/', {
            'exam': self.exam.id,
            'text': 'x',
            'question_type': 'subjective',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ExamCatalogApiTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.teacher = make_user('teacher@example.com', role='teacher')
        cls.student = make_user('student@example.com')
        cls.exam, *_ = make_scenario_exam(created_by=cls.teacher)
        cls.hidden = make_exam(created_by=cls.teacher, title='Draft', is_active=False)

    def test_students_see_only_active_exams(self):
        self.client.force_authenticate(self.student)
        response = self.client.get('/api/exams/')
        self.assertEqual([e['id'] for e in response.data], [self.exam.id])

    def test_students_do_not_see_answer_keys(self):
        self.client.force_authenticate(self.student)
        response = self.client.get(f'/api/exams/{self.exam.id}/questions/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)
        for question in response.data:
            self.assertNotIn('correct_answer', question)
            for option in question['options']:
                self.assertNotIn('is_correct', option)

    def test_teacher_sees_answer_keys(self):
        self.client.force_authenticate(self.teacher)
        response = self.client.get(f'/api/exams/{self.exam.id}/questions/')
        self.assertIn('correct_answer', response.data[0])

    def test_teacher_creates_exam(self):
        self.client.force_authenticate(self.teacher)
        response = self.client.post('/api/exams/', {
            'title': 'Algebra basics',
            'duration_minutes': 45,
            'passing_score': 60,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created_by'], self.teacher.id)


class ExamOwnershipTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = make_user('owner@example.com', role='teacher')
        cls.other_teacher = make_user('other-teacher@example.com', role='teacher')
        cls.exam, cls.mcq, *_ = make_scenario_exam(created_by=cls.owner)
        cls.other_exam = make_exam(created_by=cls.other_teacher, title='Someone else')

    def test_question_cannot_be_moved_into_another_teachers_exam(self):
        self.client.force_authenticate(self.owner)
        response = self.client.patch(
            f'/api/questions/{self.mcq.id}/', {'exam': self.other_exam.id}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.mcq.refresh_from_db()
        self.assertEqual(self.mcq.exam_id, self.exam.id)

    def test_question_can_move_between_own_exams(self):
        second = make_exam(created_by=self.owner, title='Second')
        self.client.force_authenticate(self.owner)
        response = self.client.patch(f'/api/questions/{self.mcq.id}/', {'exam': second.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.mcq.refresh_from_db()
        self.assertEqual(self.mcq.exam_id, second.id)

    def test_other_teacher_does_not_see_answer_keys(self):
        self.client.force_authenticate(self.other_teacher)
        response = self.client.get(f'/api/exams/{self.exam.id}/questions/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        for question in response.data:
            self.assertNotIn('correct_answer', question)
            for option in question['options']:
                self.assertNotIn('is_correct', option)

    def test_admin_sees_answer_keys(self):
        self.client.force_authenticate(make_user('admin@example.com', role='admin'))
        response = self.client.get(f'/api/exams/{self.exam.id}/questions/')
        self.assertIn('correct_answer', response.data[0])
