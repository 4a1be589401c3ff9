import logging

from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import NotFound

from promotions.models import PromotionCriteria
from promotions.serializers import PromotionCriteriaSerializer

logger = logging.getLogger(__name__)


def list_criteria(school):
    return list(PromotionCriteria.objects.filter(school=school))


def get_criteria(school, criteria_id):
    criteria = PromotionCriteria.objects.filter(school=school, pk=criteria_id).first()
    if criteria is None:
        raise NotFound("Promotion criteria not found")
    return criteria


def _deactivate_others(criteria):
    PromotionCriteria.objects.filter(school_id=criteria.school_id, is_active=True).exclude(pk=criteria.pk).update(
        is_active=False
    )


def create_criteria(school, fields):
    serializer = PromotionCriteriaSerializer(data=fields)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        criteria = serializer.save(school=school)
        if criteria.is_active:
            _deactivate_others(criteria)
    logger.info("Promotion criteria created", extra={"school": school.id, "criteria_id": criteria.id})
    return criteria


def update_criteria(criteria, fields):
    serializer = PromotionCriteriaSerializer(criteria, data=fields, partial=True)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        criteria = serializer.save()
        if criteria.is_active:
            _deactivate_others(criteria)
    logger.info("Promotion criteria updated", extra={"school": criteria.school_id, "criteria_id": criteria.id})
    return criteria


def delete_criteria(criteria):
    # logs keep their own copy of the figures, nothing references the row
    criteria_id = criteria.id
    criteria.delete()
    logger.info("Promotion criteria deleted", extra={"criteria_id": criteria_id})


def activate_criteria(criteria):
    with transaction.atomic():
        _deactivate_others(criteria)
        criteria.is_active = True
        criteria.save(update_fields=["is_active", "updated_at"])
    return criteria


def get_active_criteria(school):
    """
    The school's active criteria. A school without any criteria gets the
    configured default set, created active.
    """
    active = PromotionCriteria.objects.filter(school=school, is_active=True).first()
    if active is not None:
        return active
    existing = PromotionCriteria.objects.filter(school=school).first()
    if existing is not None:
        return existing
    defaults = settings.PROMOTION_DEFAULT_CRITERIA
    logger.warning("No promotion criteria configured, creating default", extra={"school": school.id})
    return PromotionCriteria.objects.create(
        school=school,
        name=defaults["name"],
        description=defaults.get("description", ""),
        min_grade=defaults["min_grade"],
        max_fee_balance=defaults["max_fee_balance"],
        max_disciplinary_cases=defaults["max_disciplinary_cases"],
        is_active=True,
        is_default=True,
    )
