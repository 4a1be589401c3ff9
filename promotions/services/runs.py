"""
Persisted state of the promotion wizard.

A run walks select_year -> criteria -> preview -> progression -> confirm ->
results. Everything an administrator enters (criteria choice, overrides,
exclusions) lives on the run, so a reload only needs to re-fetch it. Preview
stores the eligibility snapshot with its fingerprint; execution is refused
when a fresh evaluation no longer matches that fingerprint.
"""
import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import NotFound

from config.exceptions import ConflictError, StaleSnapshotError
from promotions.models import PromotionRun
from promotions.services import executor
from promotions.services.criteria import get_active_criteria
from promotions.services.eligibility import evaluate
from promotions.services.progression import rule_map

logger = logging.getLogger(__name__)

STAGES = [choice for choice, _ in PromotionRun.STAGE_CHOICES]


def create_run(school, academic_year, term=None, created_by=""):
    run = PromotionRun.objects.create(
        school=school, academic_year=academic_year, term=term, created_by=created_by or ""
    )
    logger.info("Promotion run started", extra={"school": school.id, "run_id": str(run.id)})
    return run


def get_run(school, run_id):
    run = PromotionRun.objects.select_related("academic_year", "term", "criteria").filter(
        school=school, pk=run_id
    ).first()
    if run is None:
        raise NotFound("Promotion run not found")
    return run


def _ensure_open(run):
    if run.is_closed:
        raise ConflictError("This promotion run has already been executed")


def _advance_to(run, stage):
    if STAGES.index(stage) > STAGES.index(run.stage):
        run.stage = stage


def set_stage(run, stage):
    """Move to `stage`. Going back is always allowed, going forward one step at a time."""
    _ensure_open(run)
    if stage == PromotionRun.STAGE_RESULTS:
        raise serializers.ValidationError({"stage": ["Execute the run to see its results"]})
    if STAGES.index(stage) > STAGES.index(run.stage) + 1:
        raise serializers.ValidationError({"stage": [f"Cannot move from {run.stage} to {stage}"]})
    if stage in (PromotionRun.STAGE_PROGRESSION, PromotionRun.STAGE_CONFIRM) and not run.snapshot_fingerprint:
        raise serializers.ValidationError({"stage": ["Preview eligible students first"]})
    run.stage = stage
    run.save(update_fields=["stage", "updated_at"])
    return run


def select_criteria(run, criteria):
    _ensure_open(run)
    run.criteria = criteria
    # a new threshold set invalidates the previous preview
    run.snapshot = {}
    run.snapshot_fingerprint = ""
    run.stage = PromotionRun.STAGE_CRITERIA
    run.save(update_fields=["criteria", "snapshot", "snapshot_fingerprint", "stage", "updated_at"])
    return run


def preview(run):
    _ensure_open(run)
    if run.criteria is None:
        run.criteria = get_active_criteria(run.school)
    result = evaluate(run.school, run.academic_year, run.criteria, run.term)
    run.snapshot = result.as_dict()
    run.snapshot_fingerprint = result.fingerprint
    _advance_to(run, PromotionRun.STAGE_PREVIEW)
    run.save(update_fields=["criteria", "snapshot", "snapshot_fingerprint", "stage", "updated_at"])
    return result


def _snapshot_ids(run, key):
    return {str(entry["studentId"]) for entry in run.snapshot.get(key, [])}


def override(run, student_id, note, to_class=""):
    """Promote an ineligible student anyway."""
    _ensure_open(run)
    key = str(student_id)
    if key not in _snapshot_ids(run, "ineligible"):
        raise serializers.ValidationError({"studentId": ["Only ineligible students from the preview can be overridden"]})
    run.overrides[key] = {"note": note, "toClass": to_class or ""}
    run.exclusions.pop(key, None)
    run.save(update_fields=["overrides", "exclusions", "updated_at"])
    return run


def exclude(run, student_id, note):
    """Keep an eligible student where they are."""
    _ensure_open(run)
    key = str(student_id)
    if key not in _snapshot_ids(run, "eligible"):
        raise serializers.ValidationError({"studentId": ["Only eligible students from the preview can be excluded"]})
    run.exclusions[key] = {"note": note}
    run.overrides.pop(key, None)
    run.save(update_fields=["overrides", "exclusions", "updated_at"])
    return run


def clear_adjustment(run, student_id):
    _ensure_open(run)
    key = str(student_id)
    run.overrides.pop(key, None)
    run.exclusions.pop(key, None)
    run.save(update_fields=["overrides", "exclusions", "updated_at"])
    return run


def final_promotion_list(run):
    """
    (students, ineligible_students) inputs for the executor: eligible minus
    excluded plus overridden, each with a resolved toClass.
    """
    if not run.snapshot_fingerprint:
        raise serializers.ValidationError({"stage": ["Preview eligible students first"]})
    rules = rule_map(run.school)
    eligible = run.snapshot.get("eligible", [])
    ineligible = run.snapshot.get("ineligible", [])

    chosen = [s for s in eligible if str(s["studentId"]) not in run.exclusions]
    chosen += [s for s in ineligible if str(s["studentId"]) in run.overrides]
    left_out = [s for s in eligible if str(s["studentId"]) in run.exclusions]
    left_out += [s for s in ineligible if str(s["studentId"]) not in run.overrides]

    students = []
    unresolved = []
    for entry in chosen:
        adjustment = run.overrides.get(str(entry["studentId"]))
        to_class = (adjustment or {}).get("toClass") or rules.get(entry["currentClass"], "")
        if not to_class:
            unresolved.append(f'{entry["studentName"]} ({entry["currentClass"]})')
            continue
        students.append(
            {
                "studentId": entry["studentId"],
                "fromClass": entry["currentClass"],
                "toClass": to_class,
                "manualOverride": adjustment is not None,
                "overrideReason": adjustment["note"] if adjustment else "",
                "outstandingBalance": entry["feeBalance"],
                "averageGrade": entry["averageGrade"],
                "disciplinaryCases": entry["disciplinaryCases"],
            }
        )
    if unresolved:
        raise serializers.ValidationError(
            {"toClass": ["No next class configured for: " + ", ".join(unresolved)]}
        )

    excluded = []
    for entry in left_out:
        exclusion = run.exclusions.get(str(entry["studentId"]))
        excluded.append(
            {
                "studentId": entry["studentId"],
                "fromClass": entry["currentClass"],
                "outstandingBalance": entry["feeBalance"],
                "averageGrade": entry["averageGrade"],
                "disciplinaryCases": entry["disciplinaryCases"],
                "reason": exclusion["note"] if exclusion else entry.get("reason", ""),
            }
        )
    return students, excluded


def verify_snapshot(run):
    current = evaluate(run.school, run.academic_year, run.criteria or get_active_criteria(run.school), run.term)
    if current.fingerprint != run.snapshot_fingerprint:
        logger.warning("Stale promotion snapshot", extra={"run_id": str(run.id)})
        raise StaleSnapshotError()


def check_confirmation(confirmation, promoted_by):
    expected = getattr(settings, "PROMOTION_CONFIRMATION_TEXT", "CONFIRM")
    if confirmation != expected:
        raise serializers.ValidationError({"confirmation": [f'Type "{expected}" to proceed']})
    if not promoted_by:
        raise serializers.ValidationError({"promotedBy": ["Promoted by user ID is required"]})


def execute_run(run, confirmation, promoted_by, advance_year=False):
    _ensure_open(run)
    check_confirmation(confirmation, promoted_by)
    students, excluded = final_promotion_list(run)
    verify_snapshot(run)

    run.stage = PromotionRun.STAGE_CONFIRM
    run.save(update_fields=["stage", "updated_at"])
    result = executor.execute(
        run.school,
        students,
        excluded,
        promoted_by=promoted_by,
        academic_year=run.academic_year,
        run=run,
        advance_year=advance_year,
    )
    run.result = result
    run.stage = PromotionRun.STAGE_RESULTS
    run.executed_at = timezone.now()
    run.save(update_fields=["result", "stage", "executed_at", "updated_at"])
    return result
