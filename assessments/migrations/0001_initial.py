import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("exams", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TestAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[("in_progress", "In progress"), ("completed", "Completed")],
                        default="in_progress",
                        max_length=20,
                    ),
                ),
                ("started_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("answers", models.JSONField(blank=True, default=dict)),
                ("results", models.JSONField(blank=True, default=dict)),
                ("score", models.IntegerField(blank=True, help_text="Percentage, may be negative", null=True)),
                ("passed", models.BooleanField(null=True)),
                ("total_points", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("correct_points", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("negative_points", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("final_points", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                (
                    "exam",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attempts",
                        to="exams.exam",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="test_attempts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-started_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "in_progress")),
                        fields=("exam", "user"),
                        name="one_in_progress_attempt_per_user_and_exam",
                    ),
                ],
            },
        ),
    ]
