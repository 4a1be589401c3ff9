from django.conf import settings
from django.core.management.base import BaseCommand

from promotions.tasks import purge_stale_runs


class Command(BaseCommand):
    help = "Delete promotion runs that were started but never executed."

    def add_arguments(self, parser):
        parser.add_argument(
            "--hours",
            type=int,
            default=getattr(settings, "PROMOTION_RUN_TTL_HOURS", 72),
            help="Delete runs untouched for more than N hours (default: PROMOTION_RUN_TTL_HOURS).",
        )

    def handle(self, *args, **options):
        deleted = purge_stale_runs(options["hours"])
        self.stdout.write(self.style.SUCCESS(f"Stale promotion runs deleted: {deleted}."))
