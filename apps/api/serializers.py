from rest_framework import serializers

from apps.sync.models import (
    Attendance,
    HealthMetric,
    Member,
    PotentialCustomer,
    Service,
    Staff,
    StaffAttendance,
    Transaction,
)

SYNC_FIELDS = ["id", "local_id", "created_at", "updated_at", "last_synced_at"]


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = SYNC_FIELDS + [
            "name",
            "period",
            "price",
            "category",
            "description",
            "max_usage_count",
            "usage_type",
            "status",
        ]


class MemberSerializer(serializers.ModelSerializer):
    service_name = serializers.CharField(source="service.name", read_only=True, default=None)

    class Meta:
        model = Member
        fields = SYNC_FIELDS + [
            "full_name",
            "phone_number",
            "email",
            "first_registered_at",
            "profile_image_url",
            "subscription_start_date",
            "subscription_end_date",
            "subscription_used_count",
            "subscription_status",
            "frozen",
            "frozen_start_date",
            "frozen_until_date",
            "frozen_reason",
            "freeze_duration_requested",
            "status",
            "service",
            "service_local_id",
            "service_name",
            "external_member_id",
            "date_of_birth",
            "gender",
            "organization_name",
            "card_no",
        ]


class AttendanceSerializer(serializers.ModelSerializer):
    member_name = serializers.CharField(source="member.full_name", read_only=True)

    class Meta:
        model = Attendance
        fields = SYNC_FIELDS + ["member", "member_local_id", "member_name", "date"]


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = SYNC_FIELDS + [
            "transaction_type",
            "amount",
            "transaction_date",
            "description",
            "member",
            "member_local_id",
            "service",
            "service_local_id",
            "payment_method_id",
            "income_category_id",
            "payment_status",
            "subscription_period_start",
            "subscription_period_end",
            "expense_category_id",
            "vendor",
            "receipt_url",
            "notes",
            "reference_transaction_id",
        ]


class HealthMetricSerializer(serializers.ModelSerializer):
    class Meta:
        model = HealthMetric
        fields = SYNC_FIELDS + [
            "member",
            "member_local_id",
            "measured_at",
            "weight",
            "bmi",
            "body_fat_percent",
            "heart_rate",
            "muscle_mass",
            "lean_body_mass",
            "bone_mass",
            "skeletal_muscle_mass",
            "visceral_fat",
            "subcutaneous_fat_percent",
            "protein_percent",
            "bmr",
            "body_age",
            "body_type",
        ]


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = SYNC_FIELDS + ["full_name", "phone_number", "role"]


class StaffAttendanceSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source="staff.full_name", read_only=True)

    class Meta:
        model = StaffAttendance
        fields = SYNC_FIELDS + ["staff", "staff_local_id", "staff_name", "scanned_at"]


class PotentialCustomerSerializer(serializers.ModelSerializer):
    service = serializers.PrimaryKeyRelatedField(
        queryset=Service.objects.all(), required=False, allow_null=True
    )
    service_name = serializers.CharField(source="service.name", read_only=True, default=None)

    class Meta:
        model = PotentialCustomer
        fields = [
            "id",
            "full_name",
            "phone_number",
            "email",
            "service",
            "service_name",
            "notes",
            "status",
            "registered_at",
            "converted_at",
            "converted_to_member",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "status",
            "registered_at",
            "converted_at",
            "converted_to_member",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {
            "email": {"required": False, "allow_null": True, "allow_blank": True},
            "notes": {"required": False, "allow_null": True, "allow_blank": True},
        }

    def validate_email(self, value):
        return value or None
