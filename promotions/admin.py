from django.contrib import admin

from .models import ClassProgression, ProgressionRuleSet, PromotionCriteria, PromotionLog, PromotionRun


@admin.register(PromotionCriteria)
class PromotionCriteriaAdmin(admin.ModelAdmin):
    list_display = ("name", "school", "min_grade", "max_fee_balance", "max_disciplinary_cases", "is_active")
    list_filter = ("school", "is_active", "is_default")


@admin.register(ClassProgression)
class ClassProgressionAdmin(admin.ModelAdmin):
    list_display = ("school", "from_class", "to_class", "order")
    list_filter = ("school",)


@admin.register(ProgressionRuleSet)
class ProgressionRuleSetAdmin(admin.ModelAdmin):
    list_display = ("school", "version", "updated_by", "updated_at")


@admin.register(PromotionRun)
class PromotionRunAdmin(admin.ModelAdmin):
    list_display = ("id", "school", "academic_year", "stage", "created_by", "created_at", "executed_at")
    list_filter = ("stage", "school")
    readonly_fields = ("snapshot", "snapshot_fingerprint", "result")


@admin.register(PromotionLog)
class PromotionLogAdmin(admin.ModelAdmin):
    list_display = ("student_name", "from_class", "to_class", "promotion_type", "promoted_by", "created_at")
    list_filter = ("promotion_type", "school", "academic_year")
    search_fields = ("student_name", "from_class", "to_class")
