import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Avg

from schools.models import AcademicYear, DisciplinaryCase, Term, TermResult

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def current_academic_year(school):
    year = AcademicYear.objects.filter(school=school, is_current=True).order_by("-start_date").first()
    if year is None:
        year = AcademicYear.objects.filter(school=school).order_by("-start_date").first()
    return year


def resolve_academic_year(school, value):
    """
    Accept an AcademicYear id or name (as sent by the wizard's year picker).
    Falls back to the current year when value is empty.
    """
    if value in (None, ""):
        return current_academic_year(school)
    qs = AcademicYear.objects.filter(school=school)
    # names like "2025" win over a pk with the same digits
    year = qs.filter(name=str(value)).first()
    if year is None and str(value).isdigit():
        year = qs.filter(pk=int(value)).first()
    return year


def resolve_term(academic_year, value):
    """Term of `academic_year` by id or name; None when value is empty."""
    if value in (None, ""):
        return None
    qs = Term.objects.filter(academic_year=academic_year)
    # names like "2025" win over a pk with the same digits
    term = qs.filter(name=str(value)).first()
    if term is None and str(value).isdigit():
        term = qs.filter(pk=int(value)).first()
    return term


def next_academic_year(year, create=False):
    """
    The year following `year`: the next record by start date, otherwise a year
    named name+1 when the name is numeric (created on demand if `create`).
    """
    following = (
        AcademicYear.objects.filter(school=year.school, start_date__gt=year.start_date)
        .order_by("start_date")
        .first()
    )
    if following is not None:
        return following
    if not year.name.isdigit():
        return None
    name = str(int(year.name) + 1)
    existing = AcademicYear.objects.filter(school=year.school, name=name).first()
    if existing is not None or not create:
        return existing
    start = year.end_date + timedelta(days=1)
    created = AcademicYear.objects.create(
        school=year.school,
        name=name,
        start_date=start,
        end_date=start + timedelta(days=364),
        is_current=False,
    )
    logger.info("Created academic year", extra={"school": year.school_id, "academic_year": name})
    return created


def advance_academic_year(school, year):
    """Make the year after `year` current, along with its first term."""
    target = next_academic_year(year, create=True)
    if target is None:
        return None
    with transaction.atomic():
        AcademicYear.objects.filter(school=school).update(is_current=False)
        target.is_current = True
        target.save(update_fields=["is_current"])
        first_term = Term.objects.filter(academic_year=target).order_by("start_date", "name").first()
        if first_term is not None:
            Term.objects.filter(academic_year=target).update(is_current=False)
            first_term.is_current = True
            first_term.save(update_fields=["is_current"])
    logger.info("Advanced academic year", extra={"school": school.id, "from": year.name, "to": target.name})
    return target


def average_grade(student, academic_year, term=None) -> Decimal:
    results = TermResult.objects.filter(student=student, term__academic_year=academic_year)
    if term is not None:
        results = results.filter(term=term)
    value = results.aggregate(avg=Avg("average"))["avg"]
    if value is None:
        return Decimal("0.00")
    return Decimal(value).quantize(TWO_PLACES)


def disciplinary_case_count(student, academic_year) -> int:
    return DisciplinaryCase.objects.filter(student=student, academic_year=academic_year).count()
