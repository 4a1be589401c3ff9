from django.conf import settings

from promotions.models import PromotionLog


def list_logs(school, limit=None, student_id=None, academic_year=None, promotion_type=None):
    """Promotion log rows of a school, newest first."""
    qs = PromotionLog.objects.filter(school=school)
    if student_id:
        qs = qs.filter(student_id=student_id)
    if academic_year is not None:
        qs = qs.filter(academic_year=academic_year)
    if promotion_type:
        qs = qs.filter(promotion_type=promotion_type)
    qs = qs.order_by("-created_at", "-id")
    if limit is None:
        limit = getattr(settings, "PROMOTION_HISTORY_LIMIT", 100)
    if limit:
        qs = qs[:limit]
    return list(qs)
