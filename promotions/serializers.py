from rest_framework import serializers

from promotions.models import ClassProgression, PromotionCriteria, PromotionLog, PromotionRun


class PromotionCriteriaSerializer(serializers.ModelSerializer):
    schoolId = serializers.IntegerField(source="school_id", read_only=True)
    minGrade = serializers.DecimalField(source="min_grade", max_digits=5, decimal_places=2, min_value=0, max_value=100)
    maxFeeBalance = serializers.DecimalField(source="max_fee_balance", max_digits=12, decimal_places=2, min_value=0)
    maxDisciplinaryCases = serializers.IntegerField(source="max_disciplinary_cases", min_value=0)
    isActive = serializers.BooleanField(source="is_active", required=False)
    isDefault = serializers.BooleanField(source="is_default", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = PromotionCriteria
        fields = [
            "id",
            "schoolId",
            "name",
            "description",
            "minGrade",
            "maxFeeBalance",
            "maxDisciplinaryCases",
            "isActive",
            "isDefault",
            "priority",
            "createdAt",
        ]
        extra_kwargs = {"description": {"required": False, "allow_blank": True}, "priority": {"required": False}}

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value


class ProgressionRuleSerializer(serializers.Serializer):
    fromClass = serializers.CharField(max_length=64)
    toClass = serializers.CharField(max_length=64)
    order = serializers.IntegerField(min_value=0, required=False)


class ProgressionRuleOutSerializer(serializers.ModelSerializer):
    fromClass = serializers.CharField(source="from_class")
    toClass = serializers.CharField(source="to_class")

    class Meta:
        model = ClassProgression
        fields = ["id", "fromClass", "toClass", "order"]


class PromotionInputSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    fromClass = serializers.CharField(required=False, allow_blank=True, default="")
    toClass = serializers.CharField(max_length=64)
    manualOverride = serializers.BooleanField(required=False, default=False)
    overrideReason = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    outstandingBalance = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    averageGrade = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    disciplinaryCases = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class ExcludedInputSerializer(PromotionInputSerializer):
    toClass = serializers.CharField(required=False, allow_blank=True, default="")
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")


class BulkPromotionSerializer(serializers.Serializer):
    students = PromotionInputSerializer(many=True, allow_empty=False)
    ineligibleStudents = ExcludedInputSerializer(many=True, required=False, default=list)
    promotedBy = serializers.CharField(max_length=128)
    academicYearId = serializers.CharField(required=False, allow_blank=True, default="")
    snapshotId = serializers.UUIDField(required=False, allow_null=True, default=None)
    advanceYear = serializers.BooleanField(required=False, default=False)


class PromotionLogSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source="student_id", read_only=True)
    studentName = serializers.CharField(source="student_name")
    fromClass = serializers.CharField(source="from_class")
    toClass = serializers.CharField(source="to_class")
    fromGrade = serializers.CharField(source="from_grade")
    toGrade = serializers.CharField(source="to_grade")
    fromYear = serializers.CharField(source="from_year")
    toYear = serializers.CharField(source="to_year")
    promotedBy = serializers.CharField(source="promoted_by")
    promotionType = serializers.CharField(source="promotion_type")
    averageGrade = serializers.DecimalField(source="average_grade", max_digits=5, decimal_places=2)
    outstandingBalance = serializers.DecimalField(source="outstanding_balance", max_digits=12, decimal_places=2)
    disciplinaryCases = serializers.IntegerField(source="disciplinary_cases")
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = PromotionLog
        fields = [
            "id",
            "studentId",
            "studentName",
            "fromClass",
            "toClass",
            "fromGrade",
            "toGrade",
            "fromYear",
            "toYear",
            "promotedBy",
            "promotionType",
            "averageGrade",
            "outstandingBalance",
            "disciplinaryCases",
            "notes",
            "createdAt",
        ]


class PromotionRunSerializer(serializers.ModelSerializer):
    schoolId = serializers.IntegerField(source="school_id", read_only=True)
    academicYearId = serializers.IntegerField(source="academic_year_id", read_only=True)
    termId = serializers.IntegerField(source="term_id", read_only=True)
    criteriaId = serializers.IntegerField(source="criteria_id", read_only=True)
    snapshotFingerprint = serializers.CharField(source="snapshot_fingerprint", read_only=True)
    createdBy = serializers.CharField(source="created_by", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    executedAt = serializers.DateTimeField(source="executed_at", read_only=True)

    class Meta:
        model = PromotionRun
        fields = [
            "id",
            "schoolId",
            "academicYearId",
            "termId",
            "criteriaId",
            "stage",
            "overrides",
            "exclusions",
            "snapshot",
            "snapshotFingerprint",
            "createdBy",
            "result",
            "createdAt",
            "executedAt",
        ]
        read_only_fields = fields


class RunCreateSerializer(serializers.Serializer):
    academicYearId = serializers.CharField()
    termId = serializers.IntegerField(required=False, allow_null=True, default=None)


class RunAdjustmentSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    note = serializers.CharField()
    toClass = serializers.CharField(required=False, allow_blank=True, default="")


class RunUpdateSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=[c[0] for c in PromotionRun.STAGE_CHOICES], required=False)
    criteriaId = serializers.IntegerField(required=False)
    override = RunAdjustmentSerializer(required=False)
    exclude = RunAdjustmentSerializer(required=False)
    clear = serializers.IntegerField(required=False)


class RunExecuteSerializer(serializers.Serializer):
    confirmation = serializers.CharField(allow_blank=True)
    promotedBy = serializers.CharField(max_length=128)
    advanceYear = serializers.BooleanField(required=False, default=False)
    runAsync = serializers.BooleanField(required=False, default=False)
