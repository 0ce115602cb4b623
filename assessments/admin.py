from django.contrib import admin

from .models import TestAttempt


@admin.register(TestAttempt)
class TestAttemptAdmin(admin.ModelAdmin):
    list_display = ('id', 'exam', 'user', 'status', 'score', 'passed', 'started_at', 'completed_at')
    list_filter = ('status', 'passed')
    # Graded fields are frozen at completion and never edited by hand
    readonly_fields = (
        'started_at', 'completed_at', 'answers', 'results', 'score', 'passed',
        'total_points', 'correct_points', 'negative_points', 'final_points',
    )
