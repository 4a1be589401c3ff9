from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from schools.models import AcademicYear, School, Student
from schools.serializers import AcademicYearSerializer, FeeStatementRowSerializer
from schools.services.academics import resolve_academic_year
from schools.services.fees import fee_statement


def get_school(code):
    school = School.objects.filter(code__iexact=code).first()
    if school is None:
        raise NotFound("School not found")
    return school


class AcademicYearListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code):
        school = get_school(school_code)
        years = AcademicYear.objects.filter(school=school).prefetch_related("terms").order_by("-start_date")
        return Response({"data": AcademicYearSerializer(years, many=True).data})


class FeeStatementView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, school_code, student_id):
        school = get_school(school_code)
        student = Student.objects.select_related("klass__grade_level").filter(pk=student_id, school=school).first()
        if student is None:
            raise NotFound("Student not found")
        year = resolve_academic_year(school, request.query_params.get("academicYearId"))
        if year is None:
            raise NotFound("Academic year not found")
        rows = fee_statement(student, year)
        return Response(FeeStatementRowSerializer(rows, many=True).data)
