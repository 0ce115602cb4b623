# assessments/models.py
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from exams.models import Exam

POINT_TOTAL_OPTIONS = dict(max_digits=10, decimal_places=2, null=True, blank=True)


class TestAttempt(models.Model):
    """Tracks a learner's specific attempt at a test."""

    # Keep pytest from collecting the model as a test class
    __test__ = False

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"

    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='attempts')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='test_attempts')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)

    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # {"<question id>": answer}
    answers = models.JSONField(default=dict, blank=True)
    # {"<question id>": {"correct", "answered", "points", "possiblePoints"}}, written once on completion
    results = models.JSONField(default=dict, blank=True)

    score = models.IntegerField(null=True, blank=True, help_text="Percentage, may be negative")
    passed = models.BooleanField(null=True)
    total_points = models.DecimalField(**POINT_TOTAL_OPTIONS)
    correct_points = models.DecimalField(**POINT_TOTAL_OPTIONS)
    negative_points = models.DecimalField(**POINT_TOTAL_OPTIONS)
    final_points = models.DecimalField(**POINT_TOTAL_OPTIONS)

    class Meta:
        ordering = ['-started_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['exam', 'user'],
                condition=models.Q(status='in_progress'),
                name='one_in_progress_attempt_per_user_and_exam',
            ),
        ]

    def __str__(self):
        return f"{self.user} - {self.exam.title} ({self.status})"

    @property
    def is_completed(self):
        return self.status == self.Status.COMPLETED

    @property
    def due_at(self):
        if self.started_at and self.exam.duration_minutes:
            return self.started_at + timedelta(minutes=self.exam.duration_minutes)
        return None

    def time_remaining_seconds(self, now=None):
        if self.is_completed or self.due_at is None:
            return 0
        remaining = (self.due_at - (now or timezone.now())).total_seconds()
        return max(0, int(remaining))
