from django.contrib import admin

from .models import (
    AcademicYear,
    ArrearsCarryForward,
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


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "country")
    search_fields = ("name", "code", "country")


@admin.register(AcademicYear)
class AcademicYearAdmin(admin.ModelAdmin):
    list_display = ("name", "school", "start_date", "end_date", "is_current")
    list_filter = ("school", "is_current")


@admin.register(Term)
class TermAdmin(admin.ModelAdmin):
    list_display = ("name", "academic_year", "start_date", "is_current")
    list_filter = ("academic_year__school", "is_current")


@admin.register(GradeLevel)
class GradeLevelAdmin(admin.ModelAdmin):
    list_display = ("name", "school", "is_alumni")
    list_filter = ("school", "is_alumni")


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    list_display = ("name", "grade_level", "school", "is_active")
    list_filter = ("school", "grade_level", "is_active")
    search_fields = ("name", "school__name")


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "admission_number", "klass", "is_active")
    search_fields = ("first_name", "last_name", "admission_number", "klass__name", "school__name")
    list_filter = ("school", "klass", "is_active")


@admin.register(TermResult)
class TermResultAdmin(admin.ModelAdmin):
    list_display = ("student", "term", "average", "rank")
    list_filter = ("term__academic_year",)
    search_fields = ("student__first_name", "student__last_name", "student__admission_number")


@admin.register(DisciplinaryCase)
class DisciplinaryCaseAdmin(admin.ModelAdmin):
    list_display = ("student", "academic_year", "occurred_on")
    list_filter = ("academic_year",)
    search_fields = ("student__first_name", "student__last_name", "description")


@admin.register(FeeStructure)
class FeeStructureAdmin(admin.ModelAdmin):
    list_display = ("grade_level", "term", "academic_year", "total_amount", "is_active")
    list_filter = ("school", "academic_year", "is_active")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("student", "amount", "payment_date", "method", "receipt_number")
    list_filter = ("method", "academic_year")
    search_fields = ("student__first_name", "student__last_name", "receipt_number", "reference_number")


@admin.register(ArrearsCarryForward)
class ArrearsCarryForwardAdmin(admin.ModelAdmin):
    list_display = ("student", "from_year", "to_year", "amount", "created_at")
    search_fields = ("student__first_name", "student__last_name")
