from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AttendanceViewSet,
    HealthMetricViewSet,
    MemberViewSet,
    PotentialCustomerViewSet,
    PublicRegisterView,
    ServiceViewSet,
    StaffAttendanceViewSet,
    StaffViewSet,
    TransactionViewSet,
    dashboard_attendance_trends,
    dashboard_member_growth,
    dashboard_revenue,
    dashboard_stats,
)

router = DefaultRouter()
router.register("services", ServiceViewSet)
router.register("members", MemberViewSet)
router.register("attendance", AttendanceViewSet)
router.register("transactions", TransactionViewSet)
router.register("health-metrics", HealthMetricViewSet)
router.register("staff", StaffViewSet)
router.register("staff-attendance", StaffAttendanceViewSet)
router.register("admin/potential-customers", PotentialCustomerViewSet, basename="admin-potential-customers")

urlpatterns = [
    path("dashboard/stats/", dashboard_stats, name="dashboard_stats"),
    path("dashboard/revenue/", dashboard_revenue, name="dashboard_revenue"),
    path("dashboard/attendance-trends/", dashboard_attendance_trends, name="dashboard_attendance_trends"),
    path("dashboard/member-growth/", dashboard_member_growth, name="dashboard_member_growth"),
    path("public/register/", PublicRegisterView.as_view(), name="public_register"),
    path("", include(router.urls)),
]
