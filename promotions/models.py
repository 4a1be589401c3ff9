import uuid

from django.db import models
from django.db.models import Q

from schools.models import AcademicYear, School, Student, Term


class PromotionCriteria(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="promotion_criteria")
    name = models.CharField(max_length=128)
    description = models.TextField(blank=True)
    min_grade = models.DecimalField(max_digits=5, decimal_places=2)
    max_fee_balance = models.DecimalField(max_digits=12, decimal_places=2)
    max_disciplinary_cases = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=False)
    is_default = models.BooleanField(default=False)
    priority = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.school.name})"

    class Meta:
        verbose_name_plural = "promotion criteria"
        ordering = ["-is_active", "-priority", "-created_at"]


class ProgressionRuleSet(models.Model):
    """Version counter for a school's progression rules."""

    school = models.OneToOneField(School, on_delete=models.CASCADE, related_name="progression_rule_set")
    version = models.PositiveIntegerField(default=0)
    updated_by = models.CharField(max_length=128, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.school.name} v{self.version}"


class ClassProgression(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="class_progressions")
    from_class = models.CharField(max_length=64)
    to_class = models.CharField(max_length=64)
    order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.from_class} -> {self.to_class}"

    class Meta:
        ordering = ["order", "from_class"]
        constraints = [
            models.UniqueConstraint(fields=["school", "from_class"], name="progression_school_from_uniq"),
        ]


class PromotionRun(models.Model):
    STAGE_SELECT_YEAR = "select_year"
    STAGE_CRITERIA = "criteria"
    STAGE_PREVIEW = "preview"
    STAGE_PROGRESSION = "progression"
    STAGE_CONFIRM = "confirm"
    STAGE_RESULTS = "results"
    STAGE_CHOICES = [
        (STAGE_SELECT_YEAR, "Select academic year"),
        (STAGE_CRITERIA, "Criteria"),
        (STAGE_PREVIEW, "Preview"),
        (STAGE_PROGRESSION, "Class progression"),
        (STAGE_CONFIRM, "Confirm"),
        (STAGE_RESULTS, "Results"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="promotion_runs")
    academic_year = models.ForeignKey(AcademicYear, on_delete=models.CASCADE, related_name="promotion_runs")
    term = models.ForeignKey(Term, on_delete=models.SET_NULL, null=True, blank=True, related_name="promotion_runs")
    criteria = models.ForeignKey(
        PromotionCriteria, on_delete=models.SET_NULL, null=True, blank=True, related_name="runs"
    )
    stage = models.CharField(max_length=16, choices=STAGE_CHOICES, default=STAGE_SELECT_YEAR)
    overrides = models.JSONField(default=dict, blank=True)  # {student_id: {"note": ..., "toClass": ...}}
    exclusions = models.JSONField(default=dict, blank=True)  # {student_id: {"note": ...}}
    snapshot = models.JSONField(default=dict, blank=True)
    snapshot_fingerprint = models.CharField(max_length=64, blank=True)
    created_by = models.CharField(max_length=128, blank=True)
    result = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    executed_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"Run {self.id} ({self.stage})"

    @property
    def is_closed(self):
        return self.stage == self.STAGE_RESULTS

    class Meta:
        ordering = ["-created_at"]


class PromotionLog(models.Model):
    TYPE_BULK = "bulk"
    TYPE_OVERRIDE = "override"
    TYPE_EXCLUDED = "excluded"
    TYPE_CHOICES = [
        (TYPE_BULK, "Bulk"),
        (TYPE_OVERRIDE, "Manual override"),
        (TYPE_EXCLUDED, "Excluded"),
    ]

    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="promotion_logs")
    student = models.ForeignKey(Student, on_delete=models.SET_NULL, null=True, related_name="promotion_logs")
    academic_year = models.ForeignKey(
        AcademicYear, on_delete=models.SET_NULL, null=True, blank=True, related_name="promotion_logs"
    )
    run = models.ForeignKey(PromotionRun, on_delete=models.SET_NULL, null=True, blank=True, related_name="logs")
    student_name = models.CharField(max_length=160)
    from_class = models.CharField(max_length=64)
    to_class = models.CharField(max_length=64, blank=True)
    from_grade = models.CharField(max_length=64, blank=True)
    to_grade = models.CharField(max_length=64, blank=True)
    from_year = models.CharField(max_length=32, blank=True)
    to_year = models.CharField(max_length=32, blank=True)
    promoted_by = models.CharField(max_length=128)
    promotion_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_BULK)
    average_grade = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    outstanding_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    disciplinary_cases = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student_name}: {self.from_class} -> {self.to_class or '-'}"

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["school", "created_at"], name="promolog_school_created_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "academic_year"],
                condition=~Q(promotion_type="excluded"),
                name="promotionlog_promoted_once_per_year",
            ),
            models.UniqueConstraint(
                fields=["student", "academic_year"],
                condition=Q(promotion_type="excluded"),
                name="promotionlog_excluded_once_per_year",
            ),
        ]
