from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from promotions.services.eligibility import classify, evaluate
from promotions.tests.base import SchoolFixtureMixin
from schools.models import Class, DisciplinaryCase, GradeLevel


def _criteria(min_grade=50, max_fee_balance=16000, max_cases=0):
    return SimpleNamespace(
        min_grade=Decimal(min_grade), max_fee_balance=Decimal(max_fee_balance), max_disciplinary_cases=max_cases
    )


class ClassifyTests(SimpleTestCase):
    def test_student_meeting_every_threshold_is_eligible(self):
        self.assertEqual(classify(72, 5000, 0, _criteria()), (True, ""))

    def test_low_grade_is_reported(self):
        eligible, reason = classify(40, 0, 0, _criteria())
        self.assertFalse(eligible)
        self.assertEqual(reason, "Grade 40% below minimum 50%")

    def test_thresholds_are_inclusive(self):
        self.assertTrue(classify(50, 16000, 0, _criteria())[0])

    def test_fee_balance_over_maximum(self):
        eligible, reason = classify(80, Decimal("16000.50"), 0, _criteria())
        self.assertFalse(eligible)
        self.assertEqual(reason, "Fee balance 16000.5 exceeds maximum 16000")

    def test_disciplinary_cases_over_maximum(self):
        eligible, reason = classify(80, 0, 2, _criteria(max_cases=1))
        self.assertFalse(eligible)
        self.assertEqual(reason, "2 disciplinary cases exceed maximum 1")

    def test_only_first_failing_condition_is_reported(self):
        _, reason = classify(10, 50000, 5, _criteria())
        self.assertTrue(reason.startswith("Grade"))
        self.assertNotIn("Fee", reason)


class EvaluateTests(SchoolFixtureMixin, TestCase):
    def test_students_are_split_by_criteria(self):
        result = evaluate(self.school, self.year, self.criteria)
        eligible = {s.student_id: s for s in result.eligible}
        ineligible = {s.student_id: s for s in result.ineligible}

        self.assertEqual(set(eligible), {self.alice.id, self.carol.id})
        self.assertEqual(set(ineligible), {self.bob.id})
        self.assertEqual(eligible[self.alice.id].fee_balance, Decimal("5000.00"))
        self.assertEqual(eligible[self.alice.id].average_grade, Decimal("72.00"))
        self.assertIn("below minimum", ineligible[self.bob.id].reason)

    def test_as_dict_uses_camel_case(self):
        result = evaluate(self.school, self.year, self.criteria)
        row = next(s for s in result.as_dict()["eligible"] if s["studentId"] == self.alice.id)
        self.assertEqual(row["studentName"], "Alice Wanjiru")
        self.assertEqual(row["currentClass"], "Grade 1A")
        self.assertEqual(row["feeBalance"], 5000.0)
        self.assertTrue(row["isEligible"])

    def test_student_without_results_averages_zero(self):
        self.make_student("Dan", "Kamau", "ADM004", self.class_1a, average=None, paid=10000)
        result = evaluate(self.school, self.year, self.criteria)
        dan = next(s for s in result.ineligible if s.student_name == "Dan Kamau")
        self.assertEqual(dan.average_grade, Decimal("0.00"))

    def test_student_without_class_is_ineligible(self):
        self.make_student("Eve", "Njeri", "ADM005", None, average=90)
        result = evaluate(self.school, self.year, self.criteria)
        eve = next(s for s in result.ineligible if s.student_name == "Eve Njeri")
        self.assertEqual(eve.reason, "No class assigned")
        self.assertEqual(eve.current_class, "Unassigned")

    def test_disciplinary_cases_count_for_the_year(self):
        DisciplinaryCase.objects.create(
            student=self.alice, academic_year=self.year, description="Fight", occurred_on=self.term.start_date
        )
        result = evaluate(self.school, self.year, self.criteria)
        alice = next(s for s in result.ineligible if s.student_id == self.alice.id)
        self.assertEqual(alice.reason, "1 disciplinary cases exceed maximum 0")

    def test_alumni_and_inactive_students_are_not_on_the_roster(self):
        alumni_grade = GradeLevel.objects.create(school=self.school, name="Alumni", is_alumni=True)
        alumni_class = Class.objects.create(school=self.school, name="ALUMNI", grade_level=alumni_grade)
        self.make_student("Old", "Boy", "ADM006", alumni_class, average=90)
        self.bob.is_active = False
        self.bob.save()

        result = evaluate(self.school, self.year, self.criteria)
        names = {s.student_name for s in result.eligible + result.ineligible}
        self.assertEqual(names, {"Alice Wanjiru", "Carol Akinyi"})

    def test_fingerprint_is_stable_and_tracks_changes(self):
        first = evaluate(self.school, self.year, self.criteria).fingerprint
        self.assertEqual(first, evaluate(self.school, self.year, self.criteria).fingerprint)

        self.pay(self.alice, 1000)
        self.assertNotEqual(first, evaluate(self.school, self.year, self.criteria).fingerprint)

    def test_term_filter_uses_that_term_only(self):
        term2 = self.year.terms.create(name="Term 2")
        self.alice.term_results.create(term=term2, average=Decimal("30"))
        whole_year = evaluate(self.school, self.year, self.criteria)
        first_term = evaluate(self.school, self.year, self.criteria, self.term)

        self.assertIn(self.alice.id, [s.student_id for s in whole_year.eligible])
        alice_year = next(s for s in whole_year.eligible if s.student_id == self.alice.id)
        self.assertEqual(alice_year.average_grade, Decimal("51.00"))
        alice_term = next(s for s in first_term.eligible if s.student_id == self.alice.id)
        self.assertEqual(alice_term.average_grade, Decimal("72.00"))
