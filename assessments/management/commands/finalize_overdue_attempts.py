from django.core.management.base import BaseCommand

from assessments.lifecycle import finalize_overdue_attempts


class Command(BaseCommand):
    help = 'Grades and completes in-progress attempts whose test duration has elapsed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the overdue attempts without completing them',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        attempt_ids = finalize_overdue_attempts(dry_run=dry_run)

        if not attempt_ids:
            self.stdout.write("No overdue attempts.")
            return

        verb = "Would complete" if dry_run else "Completed"
        self.stdout.write(self.style.SUCCESS(
            f"{verb} {len(attempt_ids)} overdue attempt(s): {', '.join(str(i) for i in attempt_ids)}"
        ))
