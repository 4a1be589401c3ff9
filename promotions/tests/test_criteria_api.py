from django.test import TestCase
from rest_framework.test import APIClient

from promotions.models import PromotionCriteria
from promotions.services.criteria import get_active_criteria
from promotions.tests.base import SchoolFixtureMixin


class CriteriaApiTests(SchoolFixtureMixin, TestCase):
    def payload(self, **overrides):
        data = {"name": "Strict", "minGrade": 60, "maxFeeBalance": 0, "maxDisciplinaryCases": 0}
        data.update(overrides)
        return data

    def test_list_criteria(self):
        resp = self.client.get(self.url("promotions?action=criteria"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c["name"] for c in resp.data], ["Standard"])
        self.assertEqual(resp.data[0]["minGrade"], 50)
        self.assertTrue(resp.data[0]["isActive"])

    def test_create_criteria(self):
        resp = self.client.post(self.url("promotions?action=criteria"), self.payload(), format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["schoolId"], self.school.id)
        self.assertEqual(PromotionCriteria.objects.filter(school=self.school).count(), 2)

    def test_create_accepts_wrapped_data(self):
        resp = self.client.post(
            self.url("promotions"), {"action": "criteria", "data": self.payload(name="Wrapped")}, format="json"
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["name"], "Wrapped")

    def test_blank_name_is_rejected(self):
        resp = self.client.post(self.url("promotions?action=criteria"), self.payload(name="  "), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("name", resp.data["fields"])

    def test_negative_threshold_is_rejected(self):
        resp = self.client.post(self.url("promotions?action=criteria"), self.payload(maxFeeBalance=-1), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("maxFeeBalance", resp.data["fields"])

    def test_min_grade_above_100_is_rejected(self):
        resp = self.client.post(self.url("promotions?action=criteria"), self.payload(minGrade=150), format="json")
        self.assertEqual(resp.status_code, 400)

    def test_non_numeric_threshold_is_rejected(self):
        resp = self.client.post(self.url("promotions?action=criteria"), self.payload(minGrade="abc"), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(resp.data["error"].startswith("minGrade"))

    def test_update_criteria(self):
        resp = self.client.put(
            self.url("promotions"),
            {"action": "update-criteria", "data": {"id": self.criteria.id, "minGrade": 55}},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.criteria.refresh_from_db()
        self.assertEqual(self.criteria.min_grade, 55)
        self.assertEqual(self.criteria.name, "Standard")

    def test_creating_active_criteria_deactivates_the_others(self):
        resp = self.client.post(
            self.url("promotions?action=criteria"), self.payload(isActive=True), format="json"
        )
        self.assertEqual(resp.status_code, 201)
        self.criteria.refresh_from_db()
        self.assertFalse(self.criteria.is_active)
        self.assertEqual(PromotionCriteria.objects.filter(school=self.school, is_active=True).count(), 1)

    def test_activate_criteria(self):
        other = PromotionCriteria.objects.create(
            school=self.school, name="Lenient", min_grade=40, max_fee_balance=50000, max_disciplinary_cases=3
        )
        resp = self.client.put(
            self.url("promotions"), {"action": "activate-criteria", "data": {"id": other.id}}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["isActive"])
        self.criteria.refresh_from_db()
        self.assertFalse(self.criteria.is_active)

    def test_update_unknown_criteria_is_404(self):
        resp = self.client.put(
            self.url("promotions"), {"action": "update-criteria", "data": {"id": 999, "minGrade": 55}}, format="json"
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["error"], "Promotion criteria not found")

    def test_unknown_action_is_rejected(self):
        resp = self.client.put(self.url("promotions"), {"action": "explode", "data": {}}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_non_object_data_is_rejected(self):
        for data in ([self.criteria.id], "oops"):
            resp = self.client.put(self.url("promotions"), {"action": "update-criteria", "data": data}, format="json")
            self.assertEqual(resp.status_code, 400)
            self.assertIn("data", resp.data["fields"])

    def test_delete_criteria(self):
        resp = self.client.delete(self.url(f"promotions?id={self.criteria.id}"))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(PromotionCriteria.objects.filter(pk=self.criteria.pk).exists())

    def test_requires_authentication(self):
        resp = APIClient().get(self.url("promotions?action=criteria"))
        self.assertEqual(resp.status_code, 401)
        self.assertIn("error", resp.data)


class ActiveCriteriaTests(SchoolFixtureMixin, TestCase):
    def test_default_criteria_created_when_school_has_none(self):
        PromotionCriteria.objects.all().delete()
        criteria = get_active_criteria(self.school)
        self.assertEqual(criteria.name, "Default Criteria")
        self.assertTrue(criteria.is_active)
        self.assertTrue(criteria.is_default)
        self.assertEqual(get_active_criteria(self.school).pk, criteria.pk)

    def test_active_criteria_endpoint(self):
        resp = self.client.get(self.url("promotions?action=active-criteria"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["id"], self.criteria.id)
