from django.core.management.base import BaseCommand

from promotions.services.metrics import reset_metrics


class Command(BaseCommand):
    help = "Reset the Redis counters shown on the promotion metrics websocket."

    def handle(self, *args, **options):
        reset_metrics()
        self.stdout.write(self.style.SUCCESS("Promotion metrics reset."))
