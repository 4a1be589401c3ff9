import logging
import re
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from rest_framework import serializers

from config.exceptions import ConflictError
from promotions.models import ClassProgression, ProgressionRuleSet
from promotions.serializers import ProgressionRuleSerializer
from promotions.services.eligibility import roster
from schools.models import Class, GradeLevel

logger = logging.getLogger(__name__)

ALUMNI = "ALUMNI"


def alumni_class_name():
    return getattr(settings, "PROMOTION_ALUMNI_CLASS", ALUMNI)


@dataclass
class ProgressionRule:
    from_class: str
    to_class: str
    order: int = 0
    status: str = "OK"

    def as_dict(self) -> dict:
        return {"fromClass": self.from_class, "toClass": self.to_class, "order": self.order, "status": self.status}


def grade_number(name):
    digits = re.sub(r"\D", "", name)
    return int(digits) if digits else None


def _name(item):
    return item if isinstance(item, str) else item.name


def sort_grades(grades):
    """
    Order grade names by the number embedded in them ("Grade 10" -> 10).
    Names without digits go first, in their given order; equal numbers keep
    their given order too.
    """
    names = [_name(g) for g in grades]

    def key(item):
        idx, name = item
        number = grade_number(name)
        if number is None:
            return (0, 0, idx)
        return (1, number, idx)

    return [name for _, name in sorted(enumerate(names), key=key)]


def _infer_grade(class_name, grade_names):
    candidates = [g for g in grade_names if class_name.startswith(g)]
    return max(candidates, key=len) if candidates else None


def _class_pairs(classes, grade_names):
    pairs = []
    for item in classes:
        if isinstance(item, str):
            pairs.append((item, _infer_grade(item, grade_names)))
        elif isinstance(item, (tuple, list)):
            pairs.append((item[0], _name(item[1]) if item[1] is not None else _infer_grade(item[0], grade_names)))
        else:
            grade = getattr(item, "grade_level", None)
            pairs.append((item.name, grade.name if grade is not None else _infer_grade(item.name, grade_names)))
    return pairs


def build(grades, classes):
    """
    Derive one rule per class: a class moves to the class of the next grade
    carrying the same stream suffix ("Grade 1A" -> "Grade 2A"); classes of the
    last grade move to ALUMNI. Missing targets are synthesized as
    "<next grade> <suffix>" and flagged in `status`.

    `classes` items are class names, (name, grade) pairs or Class records.
    """
    alumni = alumni_class_name()
    ordered = sort_grades(grades)
    pairs = _class_pairs(classes, ordered)
    existing = {name for name, _ in pairs}
    rules = []
    for idx, grade in enumerate(ordered):
        for class_name, class_grade in pairs:
            if class_grade != grade:
                continue
            if idx == len(ordered) - 1:
                to_class = alumni
            else:
                next_grade = ordered[idx + 1]
                suffix = class_name.replace(grade, "", 1).strip()
                match = next((c for c, g in pairs if g == next_grade and c.endswith(suffix)), None)
                to_class = match or f"{next_grade} {suffix}".strip()
            status = "OK" if to_class == alumni or to_class in existing else f"{to_class} missing"
            rules.append(ProgressionRule(class_name, to_class, len(rules), status))
    return rules


def build_for_school(school):
    grades = list(GradeLevel.objects.filter(school=school, is_alumni=False).order_by("id"))
    classes = list(
        Class.objects.filter(school=school, is_active=True)
        .exclude(grade_level__is_alumni=True)
        .select_related("grade_level")
        .order_by("name")
    )
    return build(grades, classes)


def current_version(school):
    rule_set = ProgressionRuleSet.objects.filter(school=school).first()
    return rule_set.version if rule_set else 0


def load_rules(school):
    return list(ClassProgression.objects.filter(school=school).order_by("order", "from_class"))


def rule_map(school):
    return {rule.from_class: rule.to_class for rule in load_rules(school)}


def _clean_rules(rules):
    serializer = ProgressionRuleSerializer(data=rules, many=True)
    serializer.is_valid(raise_exception=True)
    cleaned = []
    seen = set()
    for idx, rule in enumerate(serializer.validated_data):
        from_class = rule["fromClass"].strip()
        if from_class in seen:
            raise serializers.ValidationError({"rules": [f"Duplicate rule for class {from_class}"]})
        seen.add(from_class)
        cleaned.append((from_class, rule["toClass"].strip(), rule.get("order", idx)))
    return cleaned


def save_rules(school, rules, expected_version=None, updated_by=""):
    """
    Replace the school's whole rule set. When `expected_version` is given it
    must match the stored version, otherwise nothing is written.
    Returns (rules, new_version).
    """
    cleaned = _clean_rules(rules)
    with transaction.atomic():
        rule_set, _ = ProgressionRuleSet.objects.select_for_update().get_or_create(school=school)
        if expected_version is not None and int(expected_version) != rule_set.version:
            raise ConflictError(
                f"Progression rules were changed by someone else (version {rule_set.version}, "
                f"you edited version {expected_version}). Reload and try again."
            )
        ClassProgression.objects.filter(school=school).delete()
        ClassProgression.objects.bulk_create(
            [ClassProgression(school=school, from_class=f, to_class=t, order=o) for f, t, o in cleaned]
        )
        rule_set.version += 1
        rule_set.updated_by = updated_by or ""
        rule_set.save(update_fields=["version", "updated_by", "updated_at"])
    logger.info(
        "Progression rules saved",
        extra={"school": school.id, "count": len(cleaned), "version": rule_set.version},
    )
    return load_rules(school), rule_set.version


def review(school):
    """Every active student with the class the saved rules will move them to."""
    alumni = alumni_class_name()
    rules = rule_map(school)
    class_names = set(Class.objects.filter(school=school, is_active=True).values_list("name", flat=True))
    rows = []
    for student in roster(school):
        from_class = student.klass.name if student.klass else "Unassigned"
        to_class = rules.get(from_class, "")
        if not to_class:
            status = "No next class configured"
        elif to_class != alumni and to_class not in class_names:
            status = "Next class missing"
        else:
            status = "OK"
        rows.append(
            {
                "id": student.id,
                "name": student.full_name,
                "admissionNumber": student.admission_number,
                "fromClass": from_class,
                "toClass": to_class,
                "status": status,
            }
        )
    return rows
