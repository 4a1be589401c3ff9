import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from promotions.models import PromotionRun
from promotions.services import runs

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def execute_promotion_run(self, run_id: str, confirmation: str, promoted_by: str, advance_year: bool = False):
    run = PromotionRun.objects.select_related("school", "academic_year", "term", "criteria").get(id=run_id)
    logger.info("Start execute_promotion_run", extra={"run_id": run_id, "school": run.school_id})
    try:
        result = runs.execute_run(run, confirmation, promoted_by, advance_year)
    except Exception:
        logger.exception("Promotion run failed", extra={"run_id": run_id})
        raise
    logger.info(
        "Promotion run executed",
        extra={"run_id": run_id, **{key: len(value) for key, value in result.items()}},
    )
    return {key: len(value) for key, value in result.items()}


def _ttl_hours():
    try:
        return int(getattr(settings, "PROMOTION_RUN_TTL_HOURS", 72))
    except (TypeError, ValueError):
        return 72


@shared_task
def purge_stale_runs(hours: int = None):
    """Delete wizard runs abandoned before execution. Executed runs are kept as history."""
    hours = _ttl_hours() if hours is None else hours
    cutoff = timezone.now() - timedelta(hours=hours)
    deleted, _ = (
        PromotionRun.objects.filter(updated_at__lt=cutoff).exclude(stage=PromotionRun.STAGE_RESULTS).delete()
    )
    logger.info("purge_stale_runs done", extra={"hours": hours, "deleted_runs": deleted})
    return deleted
