from django.core.management.base import BaseCommand, CommandError

from promotions.services.reports import export_history
from schools.models import School
from schools.services.academics import resolve_academic_year


class Command(BaseCommand):
    help = "Export a school's promotion history to CSV (local storage or S3, see REPORT_STORAGE)."

    def add_arguments(self, parser):
        parser.add_argument("--school", required=True, help="School code.")
        parser.add_argument("--year", default="", help="Only this academic year (id or name).")
        parser.add_argument("--limit", type=int, default=0, help="Newest N entries only (default: all).")

    def handle(self, *args, **options):
        school = School.objects.filter(code__iexact=options["school"]).first()
        if school is None:
            raise CommandError(f"Unknown school: {options['school']}")
        year = None
        if options["year"]:
            year = resolve_academic_year(school, options["year"])
            if year is None:
                raise CommandError(f"Academic year not found: {options['year']}")
        url, path, count = export_history(school, academic_year=year, limit=options["limit"])
        self.stdout.write(self.style.SUCCESS(f"Exported {count} entries to {path} ({url})."))
