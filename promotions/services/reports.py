import csv
import io

from django.utils import timezone

from promotions.services.history import list_logs
from promotions.services.storage import store_report

COLUMNS = [
    ("created_at", "Date"),
    ("student_name", "Student"),
    ("from_class", "From class"),
    ("to_class", "To class"),
    ("from_grade", "From grade"),
    ("to_grade", "To grade"),
    ("from_year", "From year"),
    ("to_year", "To year"),
    ("promotion_type", "Type"),
    ("average_grade", "Average grade"),
    ("outstanding_balance", "Outstanding balance"),
    ("disciplinary_cases", "Disciplinary cases"),
    ("promoted_by", "Promoted by"),
    ("notes", "Notes"),
]


def logs_to_csv(logs) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([label for _, label in COLUMNS])
    for log in logs:
        row = []
        for attr, _ in COLUMNS:
            value = getattr(log, attr)
            row.append(value.isoformat() if attr == "created_at" else value)
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


def export_history(school, academic_year=None, limit=0):
    """Write the school's promotion history as CSV to report storage. Returns (url, path, count)."""
    logs = list_logs(school, limit=limit, academic_year=academic_year)
    stamp = timezone.now().strftime("%Y%m%d%H%M%S")
    suffix = f"_{academic_year.name}" if academic_year is not None else ""
    filename = f"promotions_{school.code}{suffix}_{stamp}.csv"
    url, path = store_report(filename, logs_to_csv(logs))
    return url, path, len(logs)
