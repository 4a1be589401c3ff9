import hashlib
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from django.conf import settings

from schools.models import Student
from schools.services.academics import average_grade, disciplinary_case_count
from schools.services.fees import outstanding_balance

logger = logging.getLogger(__name__)


def _fmt(value) -> str:
    return format(Decimal(str(value)).normalize(), "f")


@dataclass
class StudentEligibility:
    student_id: int
    student_name: str
    admission_number: str
    current_class: str
    current_grade: str
    average_grade: Decimal
    fee_balance: Decimal
    disciplinary_cases: int
    is_eligible: bool
    reason: str = ""

    def as_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "studentName": self.student_name,
            "admissionNumber": self.admission_number,
            "currentClass": self.current_class,
            "currentGrade": self.current_grade,
            "averageGrade": float(self.average_grade),
            "feeBalance": float(self.fee_balance),
            "disciplinaryCases": self.disciplinary_cases,
            "isEligible": self.is_eligible,
            "reason": self.reason,
        }


@dataclass
class EligibilityResult:
    eligible: List[StudentEligibility] = field(default_factory=list)
    ineligible: List[StudentEligibility] = field(default_factory=list)

    @property
    def fingerprint(self) -> str:
        rows = sorted(
            [
                s.student_id,
                s.current_class,
                _fmt(s.average_grade),
                _fmt(s.fee_balance),
                s.disciplinary_cases,
            ]
            for s in self.eligible + self.ineligible
        )
        return hashlib.sha256(json.dumps(rows).encode("utf-8")).hexdigest()

    def as_dict(self) -> dict:
        return {
            "eligible": [s.as_dict() for s in self.eligible],
            "ineligible": [s.as_dict() for s in self.ineligible],
        }


def classify(average, fee_balance, disciplinary_cases, criteria):
    """
    Returns (is_eligible, reason). Conditions are checked in order and only the
    first failing one is reported.
    """
    average = Decimal(str(average))
    fee_balance = Decimal(str(fee_balance))
    min_grade = Decimal(str(criteria.min_grade))
    max_fee = Decimal(str(criteria.max_fee_balance))
    max_cases = int(criteria.max_disciplinary_cases)

    if average < min_grade:
        return False, f"Grade {_fmt(average)}% below minimum {_fmt(min_grade)}%"
    if fee_balance > max_fee:
        return False, f"Fee balance {_fmt(fee_balance)} exceeds maximum {_fmt(max_fee)}"
    if disciplinary_cases > max_cases:
        return False, f"{disciplinary_cases} disciplinary cases exceed maximum {max_cases}"
    return True, ""


def roster(school):
    """Active students of the school who have not already graduated."""
    alumni = getattr(settings, "PROMOTION_ALUMNI_CLASS", "ALUMNI")
    return (
        Student.objects.filter(school=school, is_active=True)
        .exclude(klass__grade_level__is_alumni=True)
        .exclude(klass__name__iexact=alumni)
        .select_related("klass__grade_level")
        .order_by("klass__name", "last_name", "first_name", "id")
    )


def student_metrics(student, academic_year, term=None):
    return (
        average_grade(student, academic_year, term),
        outstanding_balance(student, academic_year),
        disciplinary_case_count(student, academic_year),
    )


def evaluate_student(student, academic_year, criteria, term=None) -> StudentEligibility:
    klass = student.klass
    if klass is None:
        return StudentEligibility(
            student_id=student.id,
            student_name=student.full_name,
            admission_number=student.admission_number,
            current_class="Unassigned",
            current_grade="Unassigned",
            average_grade=Decimal("0"),
            fee_balance=Decimal("0"),
            disciplinary_cases=0,
            is_eligible=False,
            reason="No class assigned",
        )
    avg, balance, cases = student_metrics(student, academic_year, term)
    is_eligible, reason = classify(avg, balance, cases, criteria)
    return StudentEligibility(
        student_id=student.id,
        student_name=student.full_name,
        admission_number=student.admission_number,
        current_class=klass.name,
        current_grade=klass.grade_level.name if klass.grade_level else "",
        average_grade=avg,
        fee_balance=balance,
        disciplinary_cases=cases,
        is_eligible=is_eligible,
        reason=reason,
    )


def evaluate(school, academic_year, criteria, term=None) -> EligibilityResult:
    """
    Classify every student on the school's roster against `criteria`.
    Read-only; safe to call repeatedly.
    """
    result = EligibilityResult()
    for student in roster(school):
        entry = evaluate_student(student, academic_year, criteria, term)
        (result.eligible if entry.is_eligible else result.ineligible).append(entry)
    logger.info(
        "Eligibility evaluated",
        extra={
            "school": school.id,
            "academic_year": academic_year.name,
            "criteria_id": getattr(criteria, "id", None),
            "eligible": len(result.eligible),
            "ineligible": len(result.ineligible),
        },
    )
    return result
