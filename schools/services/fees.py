from decimal import Decimal

from schools.models import ArrearsCarryForward, FeeStructure, Payment

ZERO = Decimal("0.00")

# brought-forward first, then charges, then payments on the same day
_ROW_ORDER = {"BROUGHT_FORWARD": 0, "CHARGE": 1, "PAYMENT": 2}


def _charge_rows(student, academic_year):
    grade_level = student.klass.grade_level if student.klass_id and student.klass else None
    if grade_level is None:
        return []
    structures = (
        FeeStructure.objects.filter(grade_level=grade_level, academic_year=academic_year, is_active=True)
        .select_related("term")
        .order_by("term__start_date", "id")
    )
    rows = []
    for fs in structures:
        term_name = fs.term.name if fs.term else "Annual"
        rows.append(
            {
                "type": "CHARGE",
                "date": (fs.term.start_date if fs.term and fs.term.start_date else academic_year.start_date),
                "description": f"{term_name} fees {academic_year.name}",
                "reference": f"FS-{fs.id}",
                "debit": fs.total_amount,
                "credit": ZERO,
            }
        )
    return rows


def _payment_rows(student, academic_year):
    rows = []
    for payment in Payment.objects.filter(student=student, academic_year=academic_year).order_by("payment_date", "id"):
        rows.append(
            {
                "type": "PAYMENT",
                "date": payment.payment_date,
                "description": f"Payment ({payment.get_method_display()})",
                "reference": payment.receipt_number or payment.reference_number,
                "debit": ZERO,
                "credit": payment.amount,
            }
        )
    return rows


def _brought_forward_rows(student, academic_year):
    rows = []
    for cf in ArrearsCarryForward.objects.filter(student=student, to_year=academic_year).select_related("from_year"):
        rows.append(
            {
                "type": "BROUGHT_FORWARD",
                "date": academic_year.start_date,
                "description": f"Balance brought forward from {cf.from_year.name}",
                "reference": f"CF-{cf.from_year.name}-{academic_year.name}",
                "debit": cf.amount if cf.amount > 0 else ZERO,
                "credit": -cf.amount if cf.amount < 0 else ZERO,
            }
        )
    return rows


def fee_statement(student, academic_year):
    """
    Chronological statement for one academic year. Each row carries the
    running balance (charges minus payments); a negative balance is a credit.
    """
    rows = _brought_forward_rows(student, academic_year) + _charge_rows(student, academic_year)
    rows += _payment_rows(student, academic_year)
    rows.sort(key=lambda r: (r["date"], _ROW_ORDER[r["type"]]))
    balance = ZERO
    for row in rows:
        balance += row["debit"] - row["credit"]
        row["balance"] = balance
    return rows


def outstanding_balance(student, academic_year) -> Decimal:
    rows = fee_statement(student, academic_year)
    if not rows:
        return ZERO
    return rows[-1]["balance"]
