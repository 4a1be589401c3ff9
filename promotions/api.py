import logging

from django.conf import settings
from rest_framework import serializers, status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from promotions.models import PromotionRun
from promotions.serializers import (
    BulkPromotionSerializer,
    ProgressionRuleOutSerializer,
    PromotionCriteriaSerializer,
    PromotionLogSerializer,
    PromotionRunSerializer,
    RunCreateSerializer,
    RunExecuteSerializer,
    RunUpdateSerializer,
)
from promotions.services import criteria as criteria_service
from promotions.services import executor, history, progression, runs
from promotions.services.eligibility import evaluate
from promotions.tasks import execute_promotion_run
from schools.api import get_school
from schools.services.academics import resolve_academic_year, resolve_term

logger = logging.getLogger(__name__)


def _actor(request, fallback=""):
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return user.get_username()
    return fallback


def _academic_year(school, value):
    year = resolve_academic_year(school, value)
    if year is None:
        raise NotFound("Academic year not found")
    return year


def _progression_payload(school):
    return {
        "rules": ProgressionRuleOutSerializer(progression.load_rules(school), many=True).data,
        "version": progression.current_version(school),
    }


class PromotionsView(APIView):
    """Criteria store, plus read shortcuts used by the promotions page."""

    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        school = get_school(school_code)
        action = request.query_params.get("action", "criteria")
        if action == "criteria":
            return Response(PromotionCriteriaSerializer(criteria_service.list_criteria(school), many=True).data)
        if action == "active-criteria":
            return Response(PromotionCriteriaSerializer(criteria_service.get_active_criteria(school)).data)
        if action == "history":
            logs = history.list_logs(school)
            return Response(PromotionLogSerializer(logs, many=True).data)
        if action == "progression":
            return Response(_progression_payload(school))
        raise serializers.ValidationError({"action": [f"Unknown action: {action}"]})

    def post(self, request, school_code):
        school = get_school(school_code)
        action = request.query_params.get("action") or request.data.get("action") or "criteria"
        if action != "criteria":
            raise serializers.ValidationError({"action": [f"Unknown action: {action}"]})
        fields = request.data.get("data", request.data)
        criteria = criteria_service.create_criteria(school, fields)
        return Response(PromotionCriteriaSerializer(criteria).data, status=status.HTTP_201_CREATED)

    def put(self, request, school_code):
        school = get_school(school_code)
        action = request.data.get("action")
        data = request.data.get("data") or {}
        if action not in ("update-criteria", "activate-criteria"):
            raise serializers.ValidationError({"action": [f"Unknown action: {action}"]})
        if not isinstance(data, dict):
            raise serializers.ValidationError({"data": ["Expected an object"]})
        if not data.get("id"):
            raise serializers.ValidationError({"id": ["Criteria id is required"]})
        criteria = criteria_service.get_criteria(school, data["id"])
        if action == "activate-criteria":
            criteria = criteria_service.activate_criteria(criteria)
        else:
            fields = {key: value for key, value in data.items() if key != "id"}
            criteria = criteria_service.update_criteria(criteria, fields)
        return Response(PromotionCriteriaSerializer(criteria).data)

    def delete(self, request, school_code):
        school = get_school(school_code)
        criteria_id = request.query_params.get("id")
        if not criteria_id:
            raise serializers.ValidationError({"id": ["Criteria id is required"]})
        criteria_service.delete_criteria(criteria_service.get_criteria(school, criteria_id))
        return Response({"success": True})


class ProgressionView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        return Response(_progression_payload(get_school(school_code)))

    def post(self, request, school_code):
        school = get_school(school_code)
        rules = request.data.get("rules")
        if not isinstance(rules, list):
            raise serializers.ValidationError({"rules": ["A list of rules is required"]})
        saved, version = progression.save_rules(
            school,
            rules,
            expected_version=request.data.get("version"),
            updated_by=_actor(request),
        )
        return Response({"rules": ProgressionRuleOutSerializer(saved, many=True).data, "version": version})


class ProgressionBuildView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        school = get_school(school_code)
        rules = progression.build_for_school(school)
        return Response(
            {"rules": [rule.as_dict() for rule in rules], "version": progression.current_version(school)}
        )


class ProgressionReviewView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        return Response(progression.review(get_school(school_code)))


class BulkPromotionView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        school = get_school(school_code)
        action = request.query_params.get("action", "preview")
        if action != "preview":
            raise serializers.ValidationError({"action": [f"Unknown action: {action}"]})
        year = _academic_year(school, request.query_params.get("year"))
        term = resolve_term(year, request.query_params.get("term"))
        criteria_id = request.query_params.get("criteriaId")
        if criteria_id:
            criteria = criteria_service.get_criteria(school, criteria_id)
        else:
            criteria = criteria_service.get_active_criteria(school)
        result = evaluate(school, year, criteria, term)
        return Response(
            {
                "eligibleStudents": [s.as_dict() for s in result.eligible],
                "ineligibleStudents": [s.as_dict() for s in result.ineligible],
                "fingerprint": result.fingerprint,
                "criteria": PromotionCriteriaSerializer(criteria).data,
                "academicYear": year.name,
            }
        )

    def post(self, request, school_code):
        school = get_school(school_code)
        serializer = BulkPromotionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        run = None
        if data["snapshotId"]:
            run = runs.get_run(school, data["snapshotId"])
            runs.verify_snapshot(run)
        year = run.academic_year if run else _academic_year(school, data["academicYearId"])

        result = executor.execute(
            school,
            request.data.get("students", []),
            request.data.get("ineligibleStudents") or [],
            promoted_by=data["promotedBy"],
            academic_year=year,
            run=run,
            advance_year=data["advanceYear"],
        )
        return Response(result)


class PromotionLogListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        school = get_school(school_code)
        params = request.query_params
        try:
            limit = int(params.get("limit", settings.PROMOTION_HISTORY_LIMIT))
        except ValueError:
            raise serializers.ValidationError({"limit": ["A valid integer is required."]})
        year = _academic_year(school, params["academicYearId"]) if params.get("academicYearId") else None
        logs = history.list_logs(
            school,
            limit=limit,
            student_id=params.get("studentId") or None,
            academic_year=year,
            promotion_type=params.get("type") or None,
        )
        return Response(PromotionLogSerializer(logs, many=True).data)


class PromotionRunListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        school = get_school(school_code)
        qs = PromotionRun.objects.filter(school=school)
        if request.query_params.get("open") in ("1", "true"):
            qs = qs.exclude(stage=PromotionRun.STAGE_RESULTS)
        return Response(PromotionRunSerializer(qs[:50], many=True).data)

    def post(self, request, school_code):
        school = get_school(school_code)
        serializer = RunCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        year = _academic_year(school, serializer.validated_data["academicYearId"])
        term = resolve_term(year, serializer.validated_data["termId"])
        run = runs.create_run(school, year, term, created_by=_actor(request))
        return Response(PromotionRunSerializer(run).data, status=status.HTTP_201_CREATED)


class PromotionRunDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code, run_id):
        run = runs.get_run(get_school(school_code), run_id)
        return Response(PromotionRunSerializer(run).data)

    def patch(self, request, school_code, run_id):
        school = get_school(school_code)
        run = runs.get_run(school, run_id)
        serializer = RunUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if "criteriaId" in data:
            run = runs.select_criteria(run, criteria_service.get_criteria(school, data["criteriaId"]))
        if "override" in data:
            item = data["override"]
            run = runs.override(run, item["studentId"], item["note"], item["toClass"])
        if "exclude" in data:
            item = data["exclude"]
            run = runs.exclude(run, item["studentId"], item["note"])
        if "clear" in data:
            run = runs.clear_adjustment(run, data["clear"])
        if "stage" in data:
            run = runs.set_stage(run, data["stage"])
        return Response(PromotionRunSerializer(run).data)


class PromotionRunPreviewView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, school_code, run_id):
        run = runs.get_run(get_school(school_code), run_id)
        runs.preview(run)
        return Response(PromotionRunSerializer(run).data)


class PromotionRunExecuteView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, school_code, run_id):
        run = runs.get_run(get_school(school_code), run_id)
        serializer = RunExecuteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["runAsync"] and not getattr(settings, "CELERY_TASK_ALWAYS_EAGER", False):
            # fail fast on what can be checked here, the worker re-checks everything
            runs.check_confirmation(data["confirmation"], data["promotedBy"])
            runs.final_promotion_list(run)
            execute_promotion_run.delay(str(run.id), data["confirmation"], data["promotedBy"], data["advanceYear"])
            logger.info("Promotion run queued", extra={"run_id": str(run.id)})
            return Response({"id": str(run.id), "stage": run.stage, "queued": True}, status=status.HTTP_202_ACCEPTED)

        result = runs.execute_run(run, data["confirmation"], data["promotedBy"], data["advanceYear"])
        return Response({"id": str(run.id), "stage": run.stage, **result})
