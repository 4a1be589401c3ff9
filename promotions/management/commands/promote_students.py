from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import APIException, ValidationError

from promotions.services import runs
from promotions.services.criteria import get_active_criteria, get_criteria
from promotions.services.eligibility import evaluate
from promotions.services.progression import rule_map
from promotions.tasks import execute_promotion_run
from schools.models import School
from schools.services.academics import resolve_academic_year, resolve_term


class Command(BaseCommand):
    help = "Evaluate a school's students against its promotion criteria and promote the eligible ones."

    def add_arguments(self, parser):
        parser.add_argument("--school", dest="school", required=True, help="School code.")
        parser.add_argument("--year", dest="year", default="", help="Academic year id or name (default: current).")
        parser.add_argument("--term", dest="term", default="", help="Only use results of this term (id or name).")
        parser.add_argument("--criteria", dest="criteria", type=int, help="Criteria id (default: the active one).")
        parser.add_argument("--promoted-by", dest="promoted_by", default="cli", help="Recorded as promotedBy.")
        parser.add_argument("--advance-year", action="store_true", help="Make the next academic year current afterwards.")
        parser.add_argument("--dry-run", action="store_true", help="Only print who would move where.")
        parser.add_argument("--async", dest="run_async", action="store_true", help="Queue the run on Celery.")
        parser.add_argument(
            "--queue",
            dest="queue",
            default=getattr(settings, "CELERY_TASK_DEFAULT_QUEUE", "promotions"),
            help="Celery queue used with --async.",
        )

    def handle(self, *args, **options):
        school = School.objects.filter(code__iexact=options["school"]).first()
        if school is None:
            raise CommandError(f"Unknown school: {options['school']}")
        year = resolve_academic_year(school, options["year"])
        if year is None:
            raise CommandError("Academic year not found.")
        term = resolve_term(year, options["term"])
        if options["term"] and term is None:
            raise CommandError(f"Term not found: {options['term']}")
        try:
            criteria = get_criteria(school, options["criteria"]) if options["criteria"] else get_active_criteria(school)
        except APIException as exc:
            raise CommandError(str(exc.detail))

        if options["dry_run"]:
            self._print_preview(school, year, term, criteria)
            return

        run = runs.create_run(school, year, term, created_by=options["promoted_by"])
        try:
            runs.select_criteria(run, criteria)
            result = runs.preview(run)
            self.stdout.write(
                f"{school.code} {year.name}: {len(result.eligible)} eligible, {len(result.ineligible)} ineligible "
                f"(criteria '{criteria.name}')"
            )
            runs.final_promotion_list(run)
        except ValidationError as exc:
            run.delete()
            raise CommandError(str(exc.detail))

        confirmation = getattr(settings, "PROMOTION_CONFIRMATION_TEXT", "CONFIRM")
        if options["run_async"]:
            execute_promotion_run.apply_async(
                args=[str(run.id), confirmation, options["promoted_by"], options["advance_year"]],
                queue=options["queue"],
            )
            self.stdout.write(self.style.SUCCESS(f"Run {run.id} queued on '{options['queue']}'."))
            return

        try:
            outcome = runs.execute_run(run, confirmation, options["promoted_by"], options["advance_year"])
        except APIException as exc:
            raise CommandError(str(exc.detail))
        for error in outcome["errors"]:
            self.stdout.write(self.style.WARNING(f"Student {error['studentId']}: {error['error']}"))
        self.stdout.write(
            self.style.SUCCESS(
                f"Run {run.id} done. Promoted: {len(outcome['promoted'])}, excluded: {len(outcome['excluded'])}, "
                f"skipped: {len(outcome['skipped'])}, errors: {len(outcome['errors'])}."
            )
        )

    def _print_preview(self, school, year, term, criteria):
        result = evaluate(school, year, criteria, term)
        rules = rule_map(school)
        for entry in result.eligible:
            target = rules.get(entry.current_class) or "(no next class)"
            self.stdout.write(f"  {entry.student_name}: {entry.current_class} -> {target}")
        for entry in result.ineligible:
            self.stdout.write(f"  {entry.student_name}: stays in {entry.current_class} ({entry.reason})")
        self.stdout.write(
            self.style.SUCCESS(
                f"Dry run: {len(result.eligible)} eligible, {len(result.ineligible)} ineligible. Nothing was changed."
            )
        )
