from unittest.mock import patch

from django.test import TestCase

from promotions.models import PromotionLog, PromotionRun
from promotions.services.progression import save_rules
from promotions.tests.base import SchoolFixtureMixin


@patch("promotions.services.executor.record_batch")
class PromotionRunTests(SchoolFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        save_rules(
            self.school,
            [{"fromClass": "Grade 1A", "toClass": "Grade 2A"}, {"fromClass": "Grade 2A", "toClass": "ALUMNI"}],
        )

    def start(self):
        resp = self.client.post(self.url("promotion-runs"), {"academicYearId": "2024"}, format="json")
        self.assertEqual(resp.status_code, 201)
        return resp.data["id"]

    def run_url(self, run_id, suffix=""):
        return self.url(f"promotion-runs/{run_id}{suffix}")

    def previewed(self):
        run_id = self.start()
        resp = self.client.post(self.run_url(run_id, "/preview"))
        self.assertEqual(resp.status_code, 200)
        return run_id

    def execute(self, run_id, **extra):
        payload = {"confirmation": "CONFIRM", "promotedBy": "admin1"}
        payload.update(extra)
        return self.client.post(self.run_url(run_id, "/execute"), payload, format="json")

    def test_create_run(self, _):
        run_id = self.start()
        run = PromotionRun.objects.get(pk=run_id)
        self.assertEqual(run.stage, PromotionRun.STAGE_SELECT_YEAR)
        self.assertEqual(run.academic_year, self.year)
        self.assertEqual(run.created_by, "admin1")

    def test_preview_stores_snapshot(self, _):
        run_id = self.previewed()
        resp = self.client.get(self.run_url(run_id))
        self.assertEqual(resp.data["stage"], "preview")
        self.assertEqual(resp.data["criteriaId"], self.criteria.id)
        self.assertEqual(len(resp.data["snapshotFingerprint"]), 64)
        self.assertEqual({s["studentId"] for s in resp.data["snapshot"]["eligible"]}, {self.alice.id, self.carol.id})

    def test_run_survives_reload_with_adjustments(self, _):
        run_id = self.previewed()
        self.client.patch(
            self.run_url(run_id), {"override": {"studentId": self.bob.id, "note": "Sat exams late"}}, format="json"
        )
        resp = self.client.get(self.run_url(run_id))
        self.assertEqual(resp.data["overrides"], {str(self.bob.id): {"note": "Sat exams late", "toClass": ""}})

    def test_override_only_for_ineligible(self, _):
        run_id = self.previewed()
        resp = self.client.patch(
            self.run_url(run_id), {"override": {"studentId": self.alice.id, "note": "x"}}, format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_override_requires_note(self, _):
        run_id = self.previewed()
        resp = self.client.patch(self.run_url(run_id), {"override": {"studentId": self.bob.id}}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_clear_removes_an_adjustment(self, _):
        run_id = self.previewed()
        self.client.patch(self.run_url(run_id), {"exclude": {"studentId": self.alice.id, "note": "Repeating"}}, format="json")
        resp = self.client.patch(self.run_url(run_id), {"clear": self.alice.id}, format="json")
        self.assertEqual(resp.data["exclusions"], {})

    def test_cannot_skip_stages(self, _):
        run_id = self.start()
        resp = self.client.patch(self.run_url(run_id), {"stage": "confirm"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.patch(self.run_url(run_id), {"stage": "criteria"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["stage"], "criteria")

    def test_going_back_is_allowed(self, _):
        run_id = self.previewed()
        resp = self.client.patch(self.run_url(run_id), {"stage": "select_year"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["stage"], "select_year")

    def test_selecting_criteria_drops_the_preview(self, _):
        run_id = self.previewed()
        resp = self.client.patch(self.run_url(run_id), {"criteriaId": self.criteria.id}, format="json")
        self.assertEqual(resp.data["snapshotFingerprint"], "")
        self.assertEqual(resp.data["stage"], "criteria")

    def test_execute_requires_confirmation_text(self, _):
        run_id = self.previewed()
        resp = self.execute(run_id, confirmation="confirm")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("CONFIRM", resp.data["error"])
        self.assertFalse(PromotionLog.objects.exists())

    def test_execute_without_preview_is_rejected(self, _):
        resp = self.execute(self.start())
        self.assertEqual(resp.status_code, 400)

    def test_execute_applies_adjustments(self, _):
        run_id = self.previewed()
        self.client.patch(
            self.run_url(run_id), {"override": {"studentId": self.bob.id, "note": "Appeal granted"}}, format="json"
        )
        self.client.patch(
            self.run_url(run_id), {"exclude": {"studentId": self.carol.id, "note": "Repeating year"}}, format="json"
        )
        resp = self.execute(run_id)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["stage"], "results")
        self.assertEqual({p["studentId"] for p in resp.data["promoted"]}, {self.alice.id, self.bob.id})
        self.assertEqual([e["studentId"] for e in resp.data["excluded"]], [self.carol.id])

        bob_log = PromotionLog.objects.get(student=self.bob)
        self.assertEqual(bob_log.promotion_type, PromotionLog.TYPE_OVERRIDE)
        self.assertEqual(bob_log.notes, "Appeal granted")
        self.assertEqual(bob_log.run_id, PromotionRun.objects.get().id)
        carol_log = PromotionLog.objects.get(student=self.carol)
        self.assertEqual(carol_log.promotion_type, PromotionLog.TYPE_EXCLUDED)
        self.assertEqual(carol_log.notes, "Repeating year")

        run = PromotionRun.objects.get()
        self.assertIsNotNone(run.executed_at)
        self.assertEqual(len(run.result["promoted"]), 2)

    def test_executed_run_is_closed(self, _):
        run_id = self.previewed()
        self.execute(run_id)
        resp = self.client.patch(self.run_url(run_id), {"stage": "preview"}, format="json")
        self.assertEqual(resp.status_code, 409)
        resp = self.execute(run_id)
        self.assertEqual(resp.status_code, 409)

    def test_stale_snapshot_blocks_execution(self, _):
        run_id = self.previewed()
        self.pay(self.alice, 500)
        resp = self.execute(run_id)
        self.assertEqual(resp.status_code, 409)
        self.assertFalse(PromotionLog.objects.exists())

    def test_unresolved_target_blocks_execution(self, _):
        save_rules(self.school, [{"fromClass": "Grade 2A", "toClass": "ALUMNI"}])
        run_id = self.previewed()
        resp = self.execute(run_id)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("No next class configured for: Alice Wanjiru (Grade 1A)", resp.data["error"])

    def test_override_target_wins_over_progression_map(self, _):
        run_id = self.previewed()
        self.client.patch(
            self.run_url(run_id),
            {"override": {"studentId": self.bob.id, "note": "Skip a grade", "toClass": "ALUMNI"}},
            format="json",
        )
        self.execute(run_id)
        self.assertEqual(PromotionLog.objects.get(student=self.bob).to_class, "ALUMNI")

    @patch("promotions.api.execute_promotion_run.delay")
    def test_async_execution_is_queued(self, mock_delay, _):
        run_id = self.previewed()
        resp = self.execute(run_id, runAsync=True)
        self.assertEqual(resp.status_code, 202)
        mock_delay.assert_called_once_with(run_id, "CONFIRM", "admin1", False)
        self.assertFalse(PromotionLog.objects.exists())

    def test_unknown_run_is_404(self, _):
        resp = self.client.get(self.url("promotion-runs/5b0c0d7e-3f5d-4f1e-9a53-2f1c1a0b9d11"))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["error"], "Promotion run not found")

    def test_list_open_runs(self, _):
        executed = self.previewed()
        self.execute(executed)
        open_run = self.start()
        resp = self.client.get(self.url("promotion-runs?open=1"))
        self.assertEqual([r["id"] for r in resp.data], [open_run])
