from django.db import models
from django.utils import timezone


class SyncedModel(models.Model):
    """Row mirrored from the desktop app. `local_id` is the desktop's own key."""

    local_id = models.IntegerField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True


class Service(SyncedModel):
    name = models.CharField(max_length=255)
    period = models.IntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2)
    category = models.CharField(max_length=100)
    description = models.TextField(null=True, blank=True)
    max_usage_count = models.IntegerField(null=True, blank=True)
    usage_type = models.CharField(max_length=50)
    status = models.CharField(max_length=50)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Member(SyncedModel):
    full_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=50, db_index=True)
    email = models.CharField(max_length=255, null=True, blank=True)
    first_registered_at = models.DateTimeField()
    profile_image_url = models.TextField(null=True, blank=True)
    subscription_start_date = models.DateTimeField()
    subscription_end_date = models.DateTimeField()
    subscription_used_count = models.IntegerField(default=0)
    subscription_status = models.CharField(max_length=50)
    frozen = models.IntegerField(default=0)
    frozen_start_date = models.DateTimeField(null=True, blank=True)
    frozen_until_date = models.DateTimeField(null=True, blank=True)
    frozen_reason = models.TextField(null=True, blank=True)
    freeze_duration_requested = models.IntegerField(null=True, blank=True)
    status = models.CharField(max_length=50, db_index=True)
    service_local_id = models.IntegerField(null=True, blank=True)
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.SET_NULL, related_name="members")
    external_member_id = models.CharField(max_length=255, null=True, blank=True)
    date_of_birth = models.DateTimeField(null=True, blank=True)
    gender = models.CharField(max_length=50, null=True, blank=True)
    organization_name = models.CharField(max_length=255, null=True, blank=True)
    card_no = models.CharField(max_length=100, null=True, blank=True)

    class Meta:
        ordering = ["full_name"]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.phone_number})"


class Attendance(SyncedModel):
    member_local_id = models.IntegerField()
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="attendance")
    date = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-date"]

    def __str__(self) -> str:
        return f"{self.member_id} @ {self.date:%Y-%m-%d %H:%M}"


class Transaction(SyncedModel):
    transaction_type = models.CharField(max_length=50, db_index=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    transaction_date = models.DateTimeField(db_index=True)
    description = models.TextField()
    member_local_id = models.IntegerField(null=True, blank=True)
    member = models.ForeignKey(Member, null=True, blank=True, on_delete=models.SET_NULL, related_name="transactions")
    service_local_id = models.IntegerField(null=True, blank=True)
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.SET_NULL, related_name="transactions")
    payment_method_id = models.IntegerField(null=True, blank=True)
    income_category_id = models.IntegerField(null=True, blank=True)
    payment_status = models.CharField(max_length=50, default="paid", db_index=True)
    subscription_period_start = models.DateTimeField(null=True, blank=True)
    subscription_period_end = models.DateTimeField(null=True, blank=True)
    expense_category_id = models.IntegerField(null=True, blank=True)
    vendor = models.CharField(max_length=255, null=True, blank=True)
    receipt_url = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    reference_transaction_id = models.IntegerField(null=True, blank=True)

    class Meta:
        ordering = ["-transaction_date"]

    def __str__(self) -> str:
        return f"{self.transaction_type} {self.amount}"


class HealthMetric(SyncedModel):
    member_local_id = models.IntegerField()
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="health_metrics")
    measured_at = models.DateTimeField()
    weight = models.FloatField(null=True, blank=True)
    bmi = models.FloatField(null=True, blank=True)
    body_fat_percent = models.FloatField(null=True, blank=True)
    heart_rate = models.IntegerField(null=True, blank=True)
    muscle_mass = models.FloatField(null=True, blank=True)
    lean_body_mass = models.FloatField(null=True, blank=True)
    bone_mass = models.FloatField(null=True, blank=True)
    skeletal_muscle_mass = models.FloatField(null=True, blank=True)
    visceral_fat = models.IntegerField(null=True, blank=True)
    subcutaneous_fat_percent = models.FloatField(null=True, blank=True)
    protein_percent = models.FloatField(null=True, blank=True)
    bmr = models.IntegerField(null=True, blank=True)
    body_age = models.IntegerField(null=True, blank=True)
    body_type = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["-measured_at"]

    def __str__(self) -> str:
        return f"{self.member_id} @ {self.measured_at:%Y-%m-%d}"


class Staff(SyncedModel):
    full_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=50, null=True, blank=True)
    role = models.CharField(max_length=100, null=True, blank=True)

    class Meta:
        ordering = ["full_name"]
        verbose_name_plural = "staff"

    def __str__(self) -> str:
        return self.full_name


class StaffAttendance(SyncedModel):
    staff_local_id = models.IntegerField()
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="attendance")
    scanned_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-scanned_at"]
        verbose_name_plural = "staff attendance"

    def __str__(self) -> str:
        return f"{self.staff_id} @ {self.scanned_at:%Y-%m-%d %H:%M}"


class PotentialCustomer(models.Model):
    """
    Lead left through the public registration form.

    Lives only in the cloud. The desktop app pulls pending leads and turns
    them into members on its side.
    """

    STATUS_PENDING = "pending"
    STATUS_CONVERTED = "converted"
    STATUS_IGNORED = "ignored"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONVERTED, "Converted"),
        (STATUS_IGNORED, "Ignored"),
    ]

    full_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=50)
    email = models.EmailField(max_length=255, null=True, blank=True)
    registered_at = models.DateTimeField(default=timezone.now, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    converted_at = models.DateTimeField(null=True, blank=True)
    converted_to_member = models.ForeignKey(
        Member, null=True, blank=True, on_delete=models.SET_NULL, related_name="leads"
    )
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.SET_NULL, related_name="leads")
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-registered_at"]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.status})"
