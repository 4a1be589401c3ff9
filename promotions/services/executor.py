import logging
from decimal import Decimal

from django.db import transaction
from rest_framework import serializers

from promotions.models import PromotionLog
from promotions.serializers import ExcludedInputSerializer, PromotionInputSerializer
from promotions.services.metrics import record_batch
from promotions.services.progression import alumni_class_name
from schools.models import ArrearsCarryForward, Class, GradeLevel, Student
from schools.services.academics import (
    advance_academic_year,
    average_grade,
    current_academic_year,
    disciplinary_case_count,
    next_academic_year,
)
from schools.services.fees import outstanding_balance

logger = logging.getLogger(__name__)


class PromotionItemError(Exception):
    """A single student could not be processed; the batch carries on."""


def _alumni_class(school):
    name = alumni_class_name()
    klass = Class.objects.filter(school=school, name__iexact=name).first()
    if klass is not None:
        return klass
    grade, _ = GradeLevel.objects.get_or_create(school=school, name="Alumni", defaults={"is_alumni": True})
    klass = Class.objects.create(school=school, name=name, grade_level=grade)
    logger.info("Created alumni class", extra={"school": school.id, "class": name})
    return klass


def _resolve_target(school, to_class):
    if to_class.upper() == alumni_class_name().upper():
        return _alumni_class(school)
    target = Class.objects.select_related("grade_level").filter(school=school, name=to_class, is_active=True).first()
    if target is None:
        raise PromotionItemError(f'Target class "{to_class}" does not exist')
    return target


def _load_student(school, student_id):
    student = (
        Student.objects.select_for_update()
        .select_related("klass__grade_level")
        .filter(pk=student_id, school=school)
        .first()
    )
    if student is None:
        raise PromotionItemError("Student not found")
    return student


def _figures(item, student, year):
    balance = item.get("outstandingBalance")
    if balance is None:
        balance = outstanding_balance(student, year)
    avg = item.get("averageGrade")
    if avg is None:
        avg = average_grade(student, year)
    cases = item.get("disciplinaryCases")
    if cases is None:
        cases = disciplinary_case_count(student, year)
    return Decimal(balance), Decimal(avg), int(cases)


def _carry_forward(student, year, next_year, balance):
    if balance != 0 and next_year is not None:
        ArrearsCarryForward.objects.update_or_create(
            student=student, from_year=year, defaults={"to_year": next_year, "amount": balance}
        )


def _promote_one(item, school, year, next_year, promoted_by, run):
    with transaction.atomic():
        student = _load_student(school, item["studentId"])
        already = (
            PromotionLog.objects.filter(student=student, academic_year=year)
            .exclude(promotion_type=PromotionLog.TYPE_EXCLUDED)
            .first()
        )
        if already is not None:
            return "skipped", {
                "studentId": student.id,
                "studentName": student.full_name,
                "reason": f"Already promoted to {already.to_class} for {year.name}",
            }

        target = _resolve_target(school, item["toClass"])
        klass = student.klass
        from_class = klass.name if klass else (item.get("fromClass") or "Unassigned")
        balance, avg, cases = _figures(item, student, year)
        manual = item.get("manualOverride", False)
        notes = item.get("overrideReason") or f"Promoted from {from_class} to {target.name}"

        student.klass = target
        student.save(update_fields=["klass"])
        log = PromotionLog.objects.create(
            school=school,
            student=student,
            academic_year=year,
            run=run,
            student_name=student.full_name,
            from_class=from_class,
            to_class=target.name,
            from_grade=klass.grade_level.name if klass and klass.grade_level else "",
            to_grade=target.grade_level.name if target.grade_level else "",
            from_year=year.name,
            to_year=next_year.name if next_year else "",
            promoted_by=promoted_by,
            promotion_type=PromotionLog.TYPE_OVERRIDE if manual else PromotionLog.TYPE_BULK,
            average_grade=avg,
            outstanding_balance=balance,
            disciplinary_cases=cases,
            notes=notes,
        )
        _carry_forward(student, year, next_year, balance)
    return "promoted", {
        "studentId": student.id,
        "studentName": student.full_name,
        "fromClass": from_class,
        "toClass": target.name,
        "promotionType": log.promotion_type,
        "outstandingBalance": float(balance),
        "logId": log.id,
    }


def _exclude_one(item, school, year, next_year, promoted_by, run):
    with transaction.atomic():
        student = _load_student(school, item["studentId"])
        already = PromotionLog.objects.filter(student=student, academic_year=year).first()
        if already is not None:
            if already.promotion_type == PromotionLog.TYPE_EXCLUDED:
                reason = f"Exclusion already recorded for {year.name}"
            else:
                reason = f"Already promoted to {already.to_class} for {year.name}"
            return "skipped", {"studentId": student.id, "studentName": student.full_name, "reason": reason}
        klass = student.klass
        from_class = klass.name if klass else (item.get("fromClass") or "Unassigned")
        balance, avg, cases = _figures(item, student, year)
        reason = item.get("reason") or item.get("overrideReason") or ""
        PromotionLog.objects.create(
            school=school,
            student=student,
            academic_year=year,
            run=run,
            student_name=student.full_name,
            from_class=from_class,
            to_class="",
            from_grade=klass.grade_level.name if klass and klass.grade_level else "",
            from_year=year.name,
            to_year=next_year.name if next_year else "",
            promoted_by=promoted_by,
            promotion_type=PromotionLog.TYPE_EXCLUDED,
            average_grade=avg,
            outstanding_balance=balance,
            disciplinary_cases=cases,
            notes=reason,
        )
        _carry_forward(student, year, next_year, balance)
    return "excluded", {
        "studentId": student.id,
        "studentName": student.full_name,
        "fromClass": from_class,
        "outstandingBalance": float(balance),
        "reason": reason,
    }


def _process(result, handler, item, *args):
    try:
        bucket, entry = handler(item, *args)
    except PromotionItemError as exc:
        logger.warning("Promotion item rejected", extra={"student_id": item["studentId"], "error": str(exc)})
        result["errors"].append({"studentId": item["studentId"], "error": str(exc)})
    except Exception as exc:
        logger.exception("Promotion item failed", extra={"student_id": item["studentId"]})
        result["errors"].append({"studentId": item["studentId"], "error": str(exc) or exc.__class__.__name__})
    else:
        result[bucket].append(entry)


def execute(school, students, ineligible_students=(), promoted_by="", academic_year=None, run=None, advance_year=False):
    """
    Move every student in `students` to its toClass and log it; log the
    `ineligible_students` that are not being promoted as exclusions.

    Each student is handled in its own savepoint: a failure is reported under
    "errors" and the rest of the batch proceeds. Students already processed
    for the academic year are reported under "skipped".
    """
    inputs = PromotionInputSerializer(data=list(students), many=True)
    inputs.is_valid(raise_exception=True)
    excluded_inputs = ExcludedInputSerializer(data=list(ineligible_students or []), many=True)
    excluded_inputs.is_valid(raise_exception=True)
    if not promoted_by:
        raise serializers.ValidationError({"promotedBy": ["Promoted by user ID is required"]})

    year = academic_year or current_academic_year(school)
    if year is None:
        raise serializers.ValidationError({"academicYearId": ["No academic year configured for this school"]})
    # the year is created up front when advancing so arrears have somewhere to go
    next_year = next_academic_year(year, create=advance_year)

    result = {"promoted": [], "excluded": [], "errors": [], "skipped": []}
    selected = set()
    for item in inputs.validated_data:
        selected.add(item["studentId"])
        _process(result, _promote_one, item, school, year, next_year, promoted_by, run)
    for item in excluded_inputs.validated_data:
        if item["studentId"] in selected:
            continue
        _process(result, _exclude_one, item, school, year, next_year, promoted_by, run)

    if advance_year and result["promoted"]:
        advance_academic_year(school, year)

    record_batch(school.id, result)
    logger.info(
        "Bulk promotion done",
        extra={
            "school": school.id,
            "academic_year": year.name,
            "promoted_by": promoted_by,
            **{key: len(value) for key, value in result.items()},
        },
    )
    return result
