import random
from datetime import date, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from schools.models import (
    AcademicYear,
    Class,
    DisciplinaryCase,
    FeeStructure,
    GradeLevel,
    Payment,
    School,
    Student,
    Term,
    TermResult,
)


class Command(BaseCommand):
    help = "Create a demo school (grades, streams, students, results, fees) to try the promotion workflow."

    def add_arguments(self, parser):
        parser.add_argument("--code", type=str, default="demo", help="School code (default: demo)")
        parser.add_argument("--grades", type=int, default=4, help="Number of grade levels (default: 4)")
        parser.add_argument("--streams", type=str, default="A,B", help="Comma separated stream suffixes (default: A,B)")
        parser.add_argument("--students", type=int, default=5, help="Students per class (default: 5)")
        parser.add_argument("--year", type=str, default=str(date.today().year), help="Academic year name")
        parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        code = options["code"]
        streams = [s.strip() for s in options["streams"].split(",") if s.strip()]

        school, _ = School.objects.get_or_create(
            code=code,
            defaults={"name": f"{code.title()} Academy", "country": "KE", "motto": "Excellence"},
        )
        year_name = options["year"]
        start = date(int(year_name), 1, 1) if year_name.isdigit() else date.today().replace(month=1, day=1)
        year, _ = AcademicYear.objects.get_or_create(
            school=school,
            name=year_name,
            defaults={"start_date": start, "end_date": start.replace(month=12, day=31), "is_current": True},
        )
        terms = []
        for idx in range(3):
            term_start = year.start_date + timedelta(days=idx * 120)
            term, _ = Term.objects.get_or_create(
                academic_year=year,
                name=f"Term {idx + 1}",
                defaults={
                    "start_date": term_start,
                    "end_date": term_start + timedelta(days=90),
                    "is_current": idx == 0,
                },
            )
            terms.append(term)

        created = 0
        for number in range(1, options["grades"] + 1):
            grade, _ = GradeLevel.objects.get_or_create(school=school, name=f"Grade {number}")
            for term in terms:
                FeeStructure.objects.get_or_create(
                    school=school,
                    grade_level=grade,
                    academic_year=year,
                    term=term,
                    defaults={"total_amount": Decimal(5000 + number * 500)},
                )
            for stream in streams:
                klass, _ = Class.objects.get_or_create(
                    school=school, name=f"Grade {number}{stream}", defaults={"grade_level": grade}
                )
                for idx in range(options["students"]):
                    admission = f"{code.upper()}-{number}{stream}-{idx + 1:03d}"
                    student, was_created = Student.objects.get_or_create(
                        school=school,
                        admission_number=admission,
                        defaults={"first_name": f"Student{idx + 1}", "last_name": klass.name.replace(" ", ""), "klass": klass},
                    )
                    if not was_created:
                        continue
                    created += 1
                    for term in terms:
                        TermResult.objects.create(student=student, term=term, average=Decimal(rng.randint(30, 95)))
                        paid = Decimal(rng.choice([0, 2500, 5000 + number * 500]))
                        if paid:
                            Payment.objects.create(
                                student=student,
                                academic_year=year,
                                term=term,
                                amount=paid,
                                payment_date=term.start_date + timedelta(days=7),
                                method="MPESA",
                                receipt_number=f"R-{student.id}-{term.id}",
                            )
                    if rng.random() < 0.1:
                        DisciplinaryCase.objects.create(
                            student=student,
                            academic_year=year,
                            description="Late to class repeatedly",
                            occurred_on=terms[0].start_date + timedelta(days=30),
                        )

        self.stdout.write(
            self.style.SUCCESS(f"Demo school '{school.code}' ready ({year.name}). Students created: {created}.")
        )
