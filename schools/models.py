from django.db import models


class School(models.Model):
    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=64, unique=True)
    address = models.TextField(blank=True)
    country = models.CharField(max_length=64, blank=True)
    motto = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return self.name


class AcademicYear(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="academic_years")
    name = models.CharField(max_length=32)
    start_date = models.DateField()
    end_date = models.DateField()
    is_current = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.name} - {self.school.name}"

    class Meta:
        ordering = ["start_date", "name"]
        constraints = [
            models.UniqueConstraint(fields=["school", "name"], name="academicyear_school_name_uniq"),
        ]


class Term(models.Model):
    academic_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="terms")
    name = models.CharField(max_length=32)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_current = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.name} ({self.academic_year.name})"

    class Meta:
        ordering = ["start_date", "name"]


class GradeLevel(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="grade_levels")
    name = models.CharField(max_length=64)
    is_alumni = models.BooleanField(default=False)

    def __str__(self):
        return self.name

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["school", "name"], name="gradelevel_school_name_uniq"),
        ]


class Class(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="classes")
    grade_level = models.ForeignKey(
        GradeLevel, on_delete=models.SET_NULL, null=True, blank=True, related_name="classes"
    )
    name = models.CharField(max_length=64)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} - {self.school.name}"

    @property
    def is_alumni(self):
        return bool(self.grade_level and self.grade_level.is_alumni)

    class Meta:
        verbose_name_plural = "classes"
        constraints = [
            models.UniqueConstraint(fields=["school", "name"], name="class_school_name_uniq"),
        ]


class Student(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="students")
    klass = models.ForeignKey(Class, on_delete=models.SET_NULL, null=True, blank=True, related_name="students")
    first_name = models.CharField(max_length=64)
    last_name = models.CharField(max_length=64)
    admission_number = models.CharField(max_length=64)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["school", "admission_number"], name="student_school_admission_uniq"),
        ]


class TermResult(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="term_results")
    term = models.ForeignKey(Term, on_delete=models.CASCADE, related_name="results")
    average = models.DecimalField(max_digits=5, decimal_places=2)
    rank = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} - {self.term}"

    class Meta:
        indexes = [
            models.Index(fields=["student", "term"], name="termresult_student_term_idx"),
        ]


class DisciplinaryCase(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="disciplinary_cases")
    academic_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="disciplinary_cases")
    description = models.TextField()
    occurred_on = models.DateField()

    def __str__(self):
        return f"Case {self.student} ({self.occurred_on})"


class FeeStructure(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="fee_structures")
    grade_level = models.ForeignKey(GradeLevel, on_delete=models.CASCADE, related_name="fee_structures")
    academic_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="fee_structures")
    term = models.ForeignKey(Term, on_delete=models.CASCADE, null=True, blank=True, related_name="fee_structures")
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        term = self.term.name if self.term else "Annual"
        return f"{self.grade_level} {term} {self.academic_year.name}: {self.total_amount}"


class Payment(models.Model):
    METHOD_CHOICES = [
        ("CASH", "Cash"),
        ("BANK", "Bank transfer"),
        ("MPESA", "M-Pesa"),
        ("CHEQUE", "Cheque"),
    ]
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="payments")
    academic_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="payments")
    term = models.ForeignKey(Term, on_delete=models.SET_NULL, null=True, blank=True, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_date = models.DateField()
    method = models.CharField(max_length=16, choices=METHOD_CHOICES, default="CASH")
    reference_number = models.CharField(max_length=64, blank=True)
    receipt_number = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} {self.amount} ({self.payment_date})"


class ArrearsCarryForward(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="carry_forwards")
    from_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="carried_out")
    to_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="carried_in")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} {self.amount} {self.from_year.name} -> {self.to_year.name}"

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["student", "from_year"], name="carryforward_student_year_uniq"),
        ]
