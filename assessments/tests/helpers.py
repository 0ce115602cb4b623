from decimal import Decimal

from django.contrib.auth import get_user_model

from exams.models import Exam, Option, Question

User = get_user_model()


def make_user(email, role='student', **extra):
    return User.objects.create_user(username=email, email=email, password='pass12345', role=role, **extra)


def make_exam(created_by=None, **fields):
    fields.setdefault('title', 'Sample Test')
    fields.setdefault('duration_minutes', 30)
    fields.setdefault('passing_score', 50)
    return Exam.objects.create(created_by=created_by, **fields)


def add_question(exam, question_type, points, negative_points=0, correct_answer=None, options=None, **fields):
    question = Question.objects.create(
        exam=exam,
        question_type=question_type,
        text=fields.pop('text', f'{question_type} question'),
        points=Decimal(str(points)),
        negative_points=Decimal(str(negative_points)),
        correct_answer=correct_answer,
        **fields,
    )
    for key, is_correct in (options or {}).items():
        Option.objects.create(question=question, key=key, text=f'Option {key}', is_correct=is_correct)
    return question


def make_scenario_exam(created_by=None, **fields):
    """Three questions worth 10 points: mcq(4, -1), true/false(2), fill-in(4)."""
    exam = make_exam(created_by=created_by, **fields)
    mcq = add_question(exam, 'mcq', 4, 1, options={'a': True, 'b': False}, sort_order=1)
    true_false = add_question(exam, 'true_false', 2, correct_answer=True, sort_order=2)
    fill_blank = add_question(exam, 'fill_blank', 4, correct_answer='42', sort_order=3)
    return exam, mcq, true_false, fill_blank
