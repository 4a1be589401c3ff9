from rest_framework import serializers

from schools.models import AcademicYear, Term


class TermSerializer(serializers.ModelSerializer):
    startDate = serializers.DateField(source="start_date")
    endDate = serializers.DateField(source="end_date")
    isCurrent = serializers.BooleanField(source="is_current")

    class Meta:
        model = Term
        fields = ["id", "name", "startDate", "endDate", "isCurrent"]


class AcademicYearSerializer(serializers.ModelSerializer):
    startDate = serializers.DateField(source="start_date")
    endDate = serializers.DateField(source="end_date")
    isCurrent = serializers.BooleanField(source="is_current")
    terms = TermSerializer(many=True, read_only=True)

    class Meta:
        model = AcademicYear
        fields = ["id", "name", "startDate", "endDate", "isCurrent", "terms"]


class FeeStatementRowSerializer(serializers.Serializer):
    type = serializers.CharField()
    date = serializers.DateField()
    description = serializers.CharField()
    reference = serializers.CharField(allow_blank=True)
    debit = serializers.DecimalField(max_digits=14, decimal_places=2)
    credit = serializers.DecimalField(max_digits=14, decimal_places=2)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2)
