from django.test import SimpleTestCase, TestCase

from promotions.models import ClassProgression
from promotions.services.progression import build, save_rules, sort_grades
from promotions.tests.base import SchoolFixtureMixin
from schools.models import Class, GradeLevel


def _pairs(rules):
    return [(rule.from_class, rule.to_class) for rule in rules]


class BuildTests(SimpleTestCase):
    def test_class_moves_to_same_stream_of_next_grade(self):
        rules = build(["Grade 1", "Grade 2"], ["Grade 1A", "Grade 2A"])
        self.assertEqual(_pairs(rules), [("Grade 1A", "Grade 2A"), ("Grade 2A", "ALUMNI")])
        self.assertEqual(rules[0].status, "OK")

    def test_terminal_grade_goes_to_alumni(self):
        rules = build(["Grade 6"], ["Grade 6A"])
        self.assertEqual(_pairs(rules), [("Grade 6A", "ALUMNI")])

    def test_every_stream_of_terminal_grade_goes_to_alumni(self):
        rules = build(["Grade 5", "Grade 6"], ["Grade 6A", "Grade 6 East", "Grade 5A"])
        targets = {f: t for f, t in _pairs(rules)}
        self.assertEqual(targets["Grade 6A"], "ALUMNI")
        self.assertEqual(targets["Grade 6 East"], "ALUMNI")
        self.assertEqual(targets["Grade 5A"], "Grade 6A")

    def test_missing_target_is_synthesized_and_flagged(self):
        rules = build(["Grade 1", "Grade 2"], ["Grade 1B", "Grade 2A"])
        rule = rules[0]
        self.assertEqual(rule.to_class, "Grade 2 B")
        self.assertEqual(rule.status, "Grade 2 B missing")

    def test_grades_are_ordered_numerically(self):
        rules = build(["Grade 10", "Grade 9", "Grade 2"], ["Grade 9A", "Grade 10A", "Grade 2A"])
        self.assertEqual(
            _pairs(rules),
            [("Grade 2A", "Grade 9A"), ("Grade 9A", "Grade 10A"), ("Grade 10A", "ALUMNI")],
        )

    def test_names_without_numbers_sort_first_in_given_order(self):
        self.assertEqual(
            sort_grades(["Grade 3", "Nursery", "Grade 1", "Reception"]),
            ["Nursery", "Reception", "Grade 1", "Grade 3"],
        )

    def test_explicit_grade_pairs(self):
        rules = build(["Form 1", "Form 2"], [("Form 1 North", "Form 1"), ("Form 2 North", "Form 2")])
        self.assertEqual(_pairs(rules), [("Form 1 North", "Form 2 North"), ("Form 2 North", "ALUMNI")])

    def test_build_is_deterministic(self):
        grades = ["Grade 3", "Grade 1", "Grade 2"]
        classes = ["Grade 1A", "Grade 1B", "Grade 2A", "Grade 2B", "Grade 3A", "Grade 3B"]
        first = [rule.as_dict() for rule in build(grades, classes)]
        second = [rule.as_dict() for rule in build(list(grades), list(classes))]
        self.assertEqual(first, second)


class ProgressionApiTests(SchoolFixtureMixin, TestCase):
    def test_save_then_fetch_round_trip(self):
        rules = [
            {"fromClass": "Grade 1A", "toClass": "Grade 2A"},
            {"fromClass": "Grade 2A", "toClass": "ALUMNI"},
        ]
        resp = self.client.post(self.url("progression"), {"rules": rules}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["version"], 1)

        resp = self.client.get(self.url("progression"))
        self.assertEqual(resp.status_code, 200)
        pairs = {(r["fromClass"], r["toClass"]) for r in resp.data["rules"]}
        self.assertEqual(pairs, {("Grade 1A", "Grade 2A"), ("Grade 2A", "ALUMNI")})

    def test_save_replaces_whole_rule_set(self):
        save_rules(self.school, [{"fromClass": "Grade 1A", "toClass": "Grade 2A"}])
        save_rules(self.school, [{"fromClass": "Grade 2A", "toClass": "ALUMNI"}])
        self.assertEqual(
            list(ClassProgression.objects.filter(school=self.school).values_list("from_class", flat=True)),
            ["Grade 2A"],
        )

    def test_stale_version_is_rejected(self):
        rules = [{"fromClass": "Grade 1A", "toClass": "Grade 2A"}]
        first = self.client.post(self.url("progression"), {"rules": rules, "version": 0}, format="json")
        self.assertEqual(first.status_code, 200)

        second = self.client.post(
            self.url("progression"),
            {"rules": [{"fromClass": "Grade 1A", "toClass": "Grade 2B"}], "version": 0},
            format="json",
        )
        self.assertEqual(second.status_code, 409)
        self.assertIn("changed by someone else", second.data["error"])
        self.assertEqual(ClassProgression.objects.get(school=self.school).to_class, "Grade 2A")

    def test_duplicate_from_class_is_rejected(self):
        rules = [
            {"fromClass": "Grade 1A", "toClass": "Grade 2A"},
            {"fromClass": "Grade 1A", "toClass": "Grade 2B"},
        ]
        resp = self.client.post(self.url("progression"), {"rules": rules}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Duplicate", resp.data["error"])

    def test_build_endpoint_does_not_save(self):
        resp = self.client.get(self.url("progression/build"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            [(r["fromClass"], r["toClass"], r["status"]) for r in resp.data["rules"]],
            [("Grade 1A", "Grade 2A", "OK"), ("Grade 2A", "ALUMNI", "OK")],
        )
        self.assertFalse(ClassProgression.objects.exists())

    def test_build_ignores_alumni_grade(self):
        alumni = GradeLevel.objects.create(school=self.school, name="Alumni", is_alumni=True)
        Class.objects.create(school=self.school, name="ALUMNI", grade_level=alumni)
        resp = self.client.get(self.url("progression/build"))
        self.assertNotIn("ALUMNI", [r["fromClass"] for r in resp.data["rules"]])

    def test_review_flags_students_without_rule(self):
        save_rules(self.school, [{"fromClass": "Grade 1A", "toClass": "Grade 2A"}])
        resp = self.client.get(self.url("progression/review"))
        self.assertEqual(resp.status_code, 200)
        rows = {row["name"]: row for row in resp.data}
        self.assertEqual(rows["Alice Wanjiru"]["toClass"], "Grade 2A")
        self.assertEqual(rows["Alice Wanjiru"]["status"], "OK")
        self.assertEqual(rows["Carol Akinyi"]["status"], "No next class configured")

    def test_review_flags_missing_target_class(self):
        save_rules(self.school, [{"fromClass": "Grade 1A", "toClass": "Grade 2Z"}])
        resp = self.client.get(self.url("progression/review"))
        rows = {row["name"]: row for row in resp.data}
        self.assertEqual(rows["Bob Otieno"]["status"], "Next class missing")

    def test_unknown_school_is_404(self):
        resp = self.client.get("/api/schools/nowhere/progression")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data, {"error": "School not found"})
