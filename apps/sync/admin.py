from django.contrib import admin

from .models import Attendance, HealthMetric, Member, PotentialCustomer, Service, Staff, StaffAttendance, Transaction


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "local_id", "category", "period", "price", "status", "last_synced_at")
    list_filter = ("category", "status")
    search_fields = ("name", "local_id")


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ("full_name", "local_id", "phone_number", "service", "subscription_end_date", "status", "last_synced_at")
    list_filter = ("status", "subscription_status")
    search_fields = ("full_name", "phone_number", "local_id", "card_no")
    raw_id_fields = ("service",)


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("member", "local_id", "date", "last_synced_at")
    search_fields = ("local_id", "member_local_id", "member__full_name")
    raw_id_fields = ("member",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("local_id", "transaction_type", "amount", "transaction_date", "payment_status", "member")
    list_filter = ("transaction_type", "payment_status")
    search_fields = ("local_id", "description", "vendor")
    raw_id_fields = ("member", "service")


@admin.register(HealthMetric)
class HealthMetricAdmin(admin.ModelAdmin):
    list_display = ("member", "local_id", "measured_at", "weight", "bmi", "body_fat_percent")
    search_fields = ("local_id", "member_local_id", "member__full_name")
    raw_id_fields = ("member",)


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("full_name", "local_id", "phone_number", "role", "last_synced_at")
    search_fields = ("full_name", "phone_number", "local_id")


@admin.register(StaffAttendance)
class StaffAttendanceAdmin(admin.ModelAdmin):
    list_display = ("staff", "local_id", "scanned_at", "last_synced_at")
    search_fields = ("local_id", "staff_local_id", "staff__full_name")
    raw_id_fields = ("staff",)


@admin.register(PotentialCustomer)
class PotentialCustomerAdmin(admin.ModelAdmin):
    list_display = ("full_name", "phone_number", "service", "status", "registered_at", "converted_to_member")
    list_filter = ("status",)
    search_fields = ("full_name", "phone_number", "email")
    raw_id_fields = ("service", "converted_to_member")
