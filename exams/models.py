# exams/models.py
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

POINTS_FIELD_OPTIONS = dict(
    max_digits=8,
    decimal_places=2,
    validators=[MinValueValidator(Decimal("0"))],
)


class Exam(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    # Reference into the course catalog, which lives outside this service
    course_id = models.PositiveIntegerField(null=True, blank=True)

    duration_minutes = models.PositiveIntegerField()
    passing_score = models.PositiveIntegerField(default=50, help_text="Pass mark percentage")

    # Used when a question is authored without explicit point values
    default_points = models.DecimalField(default=Decimal("1"), **POINTS_FIELD_OPTIONS)
    default_negative_points = models.DecimalField(default=Decimal("0"), **POINTS_FIELD_OPTIONS)

    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='created_exams',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    def list_questions(self):
        """Questions in presentation order, with MCQ options preloaded."""
        return self.questions.prefetch_related('options').order_by('sort_order', 'id')


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MCQ = "mcq", "Multiple Choice"
        TRUE_FALSE = "true_false", "True / False"
        FILL_BLANK = "fill_blank", "Fill in the Blank"
        SUBJECTIVE = "subjective", "Subjective"

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)

    text = models.TextField()
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.MCQ)

    points = models.DecimalField(default=Decimal("1"), **POINTS_FIELD_OPTIONS)
    negative_points = models.DecimalField(default=Decimal("0"), **POINTS_FIELD_OPTIONS)

    # true_false: bool, fill_blank: str or [str], subjective: [keyword].
    # MCQ answers live on the Option rows instead.
    correct_answer = models.JSONField(null=True, blank=True)
    explanation = models.TextField(blank=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['sort_order', 'id']
        constraints = [
            models.CheckConstraint(condition=models.Q(points__gte=0), name='question_points_non_negative'),
            models.CheckConstraint(
                condition=models.Q(negative_points__gte=0), name='question_negative_points_non_negative'
            ),
        ]

    def __str__(self):
        return f"{self.text[:50]}..."

    def answer_key(self):
        from assessments.grading.answer_keys import build_answer_key

        if self.question_type == self.QuestionType.MCQ:
            raw = [opt.key for opt in self.options.all() if opt.is_correct]
        else:
            raw = self.correct_answer
        return build_answer_key(self.question_type, raw)

    def to_gradable(self):
        from assessments.grading.answer_keys import GradableQuestion

        return GradableQuestion(
            id=self.id,
            key=self.answer_key(),
            points=self.points,
            negative_points=self.negative_points,
        )


class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    # Stable identifier submitted by clients, e.g. "a", "b"
    key = models.CharField(max_length=20)
    text = models.CharField(max_length=255)
    is_correct = models.BooleanField(default=False)

    class Meta:
        ordering = ['key']
        unique_together = ('question', 'key')

    def __str__(self):
        return f"{self.key}: {self.text}"
