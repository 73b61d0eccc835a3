from rest_framework import ISO_8601, serializers

from .models import PotentialCustomer

# Desktop app sends both full timestamps and bare dates.
DATETIME_INPUT_FORMATS = [ISO_8601, "%Y-%m-%d"]


class FlexibleDateTimeField(serializers.DateTimeField):
    def __init__(self, **kwargs):
        kwargs.setdefault("input_formats", DATETIME_INPUT_FORMATS)
        super().__init__(**kwargs)


def _optional(field_cls, **kwargs):
    return field_cls(required=False, allow_null=True, **kwargs)


class ServiceSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    name = serializers.CharField(max_length=255)
    period = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    category = serializers.CharField(max_length=100)
    description = _optional(serializers.CharField, allow_blank=True)
    maxUsageCount = _optional(serializers.IntegerField, source="max_usage_count")
    usageType = serializers.CharField(source="usage_type", max_length=50)
    status = serializers.CharField(max_length=50)


class MemberSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    fullName = serializers.CharField(source="full_name", max_length=255)
    phoneNumber = serializers.CharField(source="phone_number", max_length=50)
    email = _optional(serializers.CharField, max_length=255, allow_blank=True)
    firstRegisteredAt = FlexibleDateTimeField(source="first_registered_at")
    profileImageUrl = _optional(serializers.CharField, source="profile_image_url", allow_blank=True)
    subscriptionStartDate = FlexibleDateTimeField(source="subscription_start_date")
    subscriptionEndDate = FlexibleDateTimeField(source="subscription_end_date")
    subscriptionUsedCount = serializers.IntegerField(source="subscription_used_count")
    subscriptionStatus = serializers.CharField(source="subscription_status", max_length=50)
    frozen = serializers.IntegerField()
    frozenStartDate = _optional(FlexibleDateTimeField, source="frozen_start_date")
    frozenUntilDate = _optional(FlexibleDateTimeField, source="frozen_until_date")
    frozenReason = _optional(serializers.CharField, source="frozen_reason", allow_blank=True)
    freezeDurationRequested = _optional(serializers.IntegerField, source="freeze_duration_requested")
    status = serializers.CharField(max_length=50)
    serviceId = _optional(serializers.IntegerField, source="service_local_id")
    externalMemberId = _optional(serializers.CharField, source="external_member_id", max_length=255, allow_blank=True)
    dateOfBirth = _optional(FlexibleDateTimeField, source="date_of_birth")
    gender = _optional(serializers.CharField, max_length=50, allow_blank=True)
    organizationName = _optional(serializers.CharField, source="organization_name", max_length=255, allow_blank=True)
    cardNo = _optional(serializers.CharField, source="card_no", max_length=100, allow_blank=True)


class AttendanceSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    memberId = serializers.IntegerField(source="member_local_id")
    date = FlexibleDateTimeField()


class TransactionSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    transactionType = serializers.CharField(source="transaction_type", max_length=50)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    transactionDate = FlexibleDateTimeField(source="transaction_date")
    description = serializers.CharField(allow_blank=True)
    memberId = _optional(serializers.IntegerField, source="member_local_id")
    serviceId = _optional(serializers.IntegerField, source="service_local_id")
    paymentMethodId = _optional(serializers.IntegerField, source="payment_method_id")
    incomeCategoryId = _optional(serializers.IntegerField, source="income_category_id")
    paymentStatus = serializers.CharField(source="payment_status", max_length=50)
    subscriptionPeriodStart = _optional(FlexibleDateTimeField, source="subscription_period_start")
    subscriptionPeriodEnd = _optional(FlexibleDateTimeField, source="subscription_period_end")
    expenseCategoryId = _optional(serializers.IntegerField, source="expense_category_id")
    vendor = _optional(serializers.CharField, max_length=255, allow_blank=True)
    receiptUrl = _optional(serializers.CharField, source="receipt_url", allow_blank=True)
    notes = _optional(serializers.CharField, allow_blank=True)
    referenceTransactionId = _optional(serializers.IntegerField, source="reference_transaction_id")


class HealthMetricSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    memberId = serializers.IntegerField(source="member_local_id")
    measuredAt = FlexibleDateTimeField(source="measured_at")
    weight = _optional(serializers.FloatField)
    bmi = _optional(serializers.FloatField)
    bodyFatPercent = _optional(serializers.FloatField, source="body_fat_percent")
    heartRate = _optional(serializers.IntegerField, source="heart_rate")
    muscleMass = _optional(serializers.FloatField, source="muscle_mass")
    leanBodyMass = _optional(serializers.FloatField, source="lean_body_mass")
    boneMass = _optional(serializers.FloatField, source="bone_mass")
    skeletalMuscleMass = _optional(serializers.FloatField, source="skeletal_muscle_mass")
    visceralFat = _optional(serializers.IntegerField, source="visceral_fat")
    subcutaneousFatPercent = _optional(serializers.FloatField, source="subcutaneous_fat_percent")
    proteinPercent = _optional(serializers.FloatField, source="protein_percent")
    bmr = _optional(serializers.IntegerField)
    bodyAge = _optional(serializers.IntegerField, source="body_age")
    bodyType = _optional(serializers.CharField, source="body_type", allow_blank=True)


class StaffSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    fullName = serializers.CharField(source="full_name", max_length=255)
    phoneNumber = _optional(serializers.CharField, source="phone_number", max_length=50, allow_blank=True)
    role = _optional(serializers.CharField, max_length=100, allow_blank=True)


class StaffAttendanceSyncSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="local_id")
    staffId = serializers.IntegerField(source="staff_local_id")
    scannedAt = FlexibleDateTimeField(source="scanned_at")


class SyncPayloadSerializer(serializers.Serializer):
    timestamp = serializers.DateTimeField(required=False)
    services = ServiceSyncSerializer(many=True, required=False)
    members = MemberSyncSerializer(many=True, required=False)
    attendance = AttendanceSyncSerializer(many=True, required=False)
    transactions = TransactionSyncSerializer(many=True, required=False)
    healthMetrics = HealthMetricSyncSerializer(many=True, required=False, source="health_metrics")
    staff = StaffSyncSerializer(many=True, required=False)
    staffAttendance = StaffAttendanceSyncSerializer(many=True, required=False, source="staff_attendance")


class PotentialCustomerOutSerializer(serializers.ModelSerializer):
    """Lead as the desktop app reads it (camelCase, cloud ids)."""

    fullName = serializers.CharField(source="full_name")
    phoneNumber = serializers.CharField(source="phone_number")
    registeredAt = serializers.DateTimeField(source="registered_at")
    convertedAt = serializers.DateTimeField(source="converted_at")
    convertedToMemberId = serializers.IntegerField(source="converted_to_member_id")
    serviceId = serializers.IntegerField(source="service_id")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = PotentialCustomer
        fields = [
            "id",
            "fullName",
            "phoneNumber",
            "email",
            "registeredAt",
            "status",
            "convertedAt",
            "convertedToMemberId",
            "serviceId",
            "notes",
            "createdAt",
            "updatedAt",
        ]
