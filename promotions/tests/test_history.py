import csv
import io
import tempfile
from pathlib import Path

from django.core.management import call_command
from django.test import TestCase, override_settings

from promotions.models import PromotionLog
from promotions.services.history import list_logs
from promotions.services.reports import export_history, logs_to_csv
from promotions.tests.base import SchoolFixtureMixin


class HistoryTests(SchoolFixtureMixin, TestCase):
    def log(self, student, to_class, promotion_type=PromotionLog.TYPE_BULK, year=None):
        return PromotionLog.objects.create(
            school=self.school,
            student=student,
            academic_year=year,
            student_name=student.full_name,
            from_class=student.klass.name,
            to_class=to_class,
            from_year="2024",
            promoted_by="admin1",
            promotion_type=promotion_type,
        )

    def test_logs_are_listed_newest_first(self):
        first = self.log(self.alice, "Grade 2A")
        second = self.log(self.carol, "ALUMNI")
        resp = self.client.get(self.url("promotion-logs"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([row["id"] for row in resp.data], [second.id, first.id])
        self.assertEqual(resp.data[0]["studentName"], "Carol Akinyi")
        self.assertEqual(resp.data[0]["promotionType"], "bulk")

    def test_limit_and_filters(self):
        self.log(self.alice, "Grade 2A", year=self.year)
        self.log(self.bob, "", promotion_type=PromotionLog.TYPE_EXCLUDED, year=self.year)
        self.log(self.carol, "ALUMNI")

        resp = self.client.get(self.url("promotion-logs?limit=1"))
        self.assertEqual(len(resp.data), 1)

        resp = self.client.get(self.url("promotion-logs?type=excluded"))
        self.assertEqual([row["studentId"] for row in resp.data], [self.bob.id])

        resp = self.client.get(self.url(f"promotion-logs?studentId={self.alice.id}"))
        self.assertEqual([row["studentId"] for row in resp.data], [self.alice.id])

        self.assertEqual(len(list_logs(self.school, academic_year=self.year)), 2)

    def test_invalid_limit_is_rejected(self):
        resp = self.client.get(self.url("promotion-logs?limit=many"))
        self.assertEqual(resp.status_code, 400)

    @override_settings(PROMOTION_HISTORY_LIMIT=2)
    def test_default_limit_comes_from_settings(self):
        for _ in range(3):
            self.log(self.alice, "Grade 2A")
        self.assertEqual(len(list_logs(self.school)), 2)
        self.assertEqual(len(list_logs(self.school, limit=0)), 3)

    def test_history_shortcut_on_promotions_endpoint(self):
        self.log(self.alice, "Grade 2A")
        resp = self.client.get(self.url("promotions?action=history"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 1)

    def test_logs_to_csv(self):
        self.log(self.alice, "Grade 2A")
        rows = list(csv.reader(io.StringIO(logs_to_csv(list_logs(self.school)).decode("utf-8"))))
        self.assertEqual(rows[0][:4], ["Date", "Student", "From class", "To class"])
        self.assertEqual(rows[1][1:4], ["Alice Wanjiru", "Grade 1A", "Grade 2A"])

    def test_export_to_local_storage(self):
        self.log(self.alice, "Grade 2A")
        with tempfile.TemporaryDirectory() as tmp:
            with override_settings(REPORT_STORAGE="local", REPORT_STORAGE_PATH=tmp, REPORT_BASE_URL="http://x/reports/"):
                url, path, count = export_history(self.school)
                self.assertEqual(count, 1)
                self.assertTrue(Path(path).exists())
                self.assertTrue(url.startswith("http://x/reports/promotions_greenhill_"))

    def test_export_command(self):
        self.log(self.alice, "Grade 2A", year=self.year)
        out = io.StringIO()
        with tempfile.TemporaryDirectory() as tmp:
            with override_settings(REPORT_STORAGE="local", REPORT_STORAGE_PATH=tmp):
                call_command("export_promotion_logs", "--school", "greenhill", "--year", "2024", stdout=out)
                self.assertEqual(len(list(Path(tmp).iterdir())), 1)
        self.assertIn("Exported 1 entries", out.getvalue())
