from django.db import migrations, models
import django.db.models.deletion


def _sync_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("local_id", models.IntegerField(unique=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("last_synced_at", models.DateTimeField(null=True, blank=True)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Service",
            fields=_sync_fields()
            + [
                ("name", models.CharField(max_length=255)),
                ("period", models.IntegerField()),
                ("price", models.DecimalField(max_digits=10, decimal_places=2)),
                ("category", models.CharField(max_length=100)),
                ("description", models.TextField(null=True, blank=True)),
                ("max_usage_count", models.IntegerField(null=True, blank=True)),
                ("usage_type", models.CharField(max_length=50)),
                ("status", models.CharField(max_length=50)),
            ],
            options={"ordering": ["name"], "abstract": False},
        ),
        migrations.CreateModel(
            name="Staff",
            fields=_sync_fields()
            + [
                ("full_name", models.CharField(max_length=255)),
                ("phone_number", models.CharField(max_length=50, null=True, blank=True)),
                ("role", models.CharField(max_length=100, null=True, blank=True)),
            ],
            options={"ordering": ["full_name"], "verbose_name_plural": "staff", "abstract": False},
        ),
        migrations.CreateModel(
            name="Member",
            fields=_sync_fields()
            + [
                ("full_name", models.CharField(max_length=255)),
                ("phone_number", models.CharField(max_length=50, db_index=True)),
                ("email", models.CharField(max_length=255, null=True, blank=True)),
                ("first_registered_at", models.DateTimeField()),
                ("profile_image_url", models.TextField(null=True, blank=True)),
                ("subscription_start_date", models.DateTimeField()),
                ("subscription_end_date", models.DateTimeField()),
                ("subscription_used_count", models.IntegerField(default=0)),
                ("subscription_status", models.CharField(max_length=50)),
                ("frozen", models.IntegerField(default=0)),
                ("frozen_start_date", models.DateTimeField(null=True, blank=True)),
                ("frozen_until_date", models.DateTimeField(null=True, blank=True)),
                ("frozen_reason", models.TextField(null=True, blank=True)),
                ("freeze_duration_requested", models.IntegerField(null=True, blank=True)),
                ("status", models.CharField(max_length=50, db_index=True)),
                ("service_local_id", models.IntegerField(null=True, blank=True)),
                ("external_member_id", models.CharField(max_length=255, null=True, blank=True)),
                ("date_of_birth", models.DateTimeField(null=True, blank=True)),
                ("gender", models.CharField(max_length=50, null=True, blank=True)),
                ("organization_name", models.CharField(max_length=255, null=True, blank=True)),
                ("card_no", models.CharField(max_length=100, null=True, blank=True)),
                (
                    "service",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="members",
                        to="sync.service",
                    ),
                ),
            ],
            options={"ordering": ["full_name"], "abstract": False},
        ),
        migrations.CreateModel(
            name="Attendance",
            fields=_sync_fields()
            + [
                ("member_local_id", models.IntegerField()),
                ("date", models.DateTimeField(db_index=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="attendance", to="sync.member"
                    ),
                ),
            ],
            options={"ordering": ["-date"], "abstract": False},
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=_sync_fields()
            + [
                ("transaction_type", models.CharField(max_length=50, db_index=True)),
                ("amount", models.DecimalField(max_digits=10, decimal_places=2)),
                ("transaction_date", models.DateTimeField(db_index=True)),
                ("description", models.TextField()),
                ("member_local_id", models.IntegerField(null=True, blank=True)),
                ("service_local_id", models.IntegerField(null=True, blank=True)),
                ("payment_method_id", models.IntegerField(null=True, blank=True)),
                ("income_category_id", models.IntegerField(null=True, blank=True)),
                ("payment_status", models.CharField(max_length=50, default="paid", db_index=True)),
                ("subscription_period_start", models.DateTimeField(null=True, blank=True)),
                ("subscription_period_end", models.DateTimeField(null=True, blank=True)),
                ("expense_category_id", models.IntegerField(null=True, blank=True)),
                ("vendor", models.CharField(max_length=255, null=True, blank=True)),
                ("receipt_url", models.TextField(null=True, blank=True)),
                ("notes", models.TextField(null=True, blank=True)),
                ("reference_transaction_id", models.IntegerField(null=True, blank=True)),
                (
                    "member",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="sync.member",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="sync.service",
                    ),
                ),
            ],
            options={"ordering": ["-transaction_date"], "abstract": False},
        ),
        migrations.CreateModel(
            name="HealthMetric",
            fields=_sync_fields()
            + [
                ("member_local_id", models.IntegerField()),
                ("measured_at", models.DateTimeField()),
                ("weight", models.FloatField(null=True, blank=True)),
                ("bmi", models.FloatField(null=True, blank=True)),
                ("body_fat_percent", models.FloatField(null=True, blank=True)),
                ("heart_rate", models.IntegerField(null=True, blank=True)),
                ("muscle_mass", models.FloatField(null=True, blank=True)),
                ("lean_body_mass", models.FloatField(null=True, blank=True)),
                ("bone_mass", models.FloatField(null=True, blank=True)),
                ("skeletal_muscle_mass", models.FloatField(null=True, blank=True)),
                ("visceral_fat", models.IntegerField(null=True, blank=True)),
                ("subcutaneous_fat_percent", models.FloatField(null=True, blank=True)),
                ("protein_percent", models.FloatField(null=True, blank=True)),
                ("bmr", models.IntegerField(null=True, blank=True)),
                ("body_age", models.IntegerField(null=True, blank=True)),
                ("body_type", models.TextField(null=True, blank=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="health_metrics", to="sync.member"
                    ),
                ),
            ],
            options={"ordering": ["-measured_at"], "abstract": False},
        ),
        migrations.CreateModel(
            name="StaffAttendance",
            fields=_sync_fields()
            + [
                ("staff_local_id", models.IntegerField()),
                ("scanned_at", models.DateTimeField(db_index=True)),
                (
                    "staff",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="attendance", to="sync.staff"
                    ),
                ),
            ],
            options={
                "ordering": ["-scanned_at"],
                "verbose_name_plural": "staff attendance",
                "abstract": False,
            },
        ),
    ]
