from django.contrib import admin
from django.urls import path

from promotions.api import (
    BulkPromotionView,
    ProgressionBuildView,
    ProgressionReviewView,
    ProgressionView,
    PromotionLogListView,
    PromotionRunDetailView,
    PromotionRunExecuteView,
    PromotionRunListView,
    PromotionRunPreviewView,
    PromotionsView,
)
from schools.api import AcademicYearListView, FeeStatementView

school = "api/schools/<str:school_code>/"

urlpatterns = [
    path("admin/", admin.site.urls),
    path(school + "academic-years", AcademicYearListView.as_view(), name="academic-years"),
    path(
        school + "students/<int:student_id>/fee-statement",
        FeeStatementView.as_view(),
        name="fee-statement",
    ),
    path(school + "promotions", PromotionsView.as_view(), name="promotions"),
    path(school + "promotions/bulk", BulkPromotionView.as_view(), name="bulk-promotion"),
    path(school + "progression", ProgressionView.as_view(), name="progression"),
    path(school + "progression/build", ProgressionBuildView.as_view(), name="progression-build"),
    path(school + "progression/review", ProgressionReviewView.as_view(), name="progression-review"),
    path(school + "promotion-logs", PromotionLogListView.as_view(), name="promotion-logs"),
    path(school + "promotion-runs", PromotionRunListView.as_view(), name="promotion-runs"),
    path(school + "promotion-runs/<uuid:run_id>", PromotionRunDetailView.as_view(), name="promotion-run"),
    path(
        school + "promotion-runs/<uuid:run_id>/preview",
        PromotionRunPreviewView.as_view(),
        name="promotion-run-preview",
    ),
    path(
        school + "promotion-runs/<uuid:run_id>/execute",
        PromotionRunExecuteView.as_view(),
        name="promotion-run-execute",
    ),
]
