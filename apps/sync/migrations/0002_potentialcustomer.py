from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    dependencies = [
        ("sync", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PotentialCustomer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("full_name", models.CharField(max_length=255)),
                ("phone_number", models.CharField(max_length=50)),
                ("email", models.EmailField(max_length=255, null=True, blank=True)),
                ("registered_at", models.DateTimeField(default=django.utils.timezone.now, db_index=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("converted", "Converted"), ("ignored", "Ignored")],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("converted_at", models.DateTimeField(null=True, blank=True)),
                ("notes", models.TextField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "converted_to_member",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="leads",
                        to="sync.member",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        null=True,
                        blank=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="leads",
                        to="sync.service",
                    ),
                ),
            ],
            options={"ordering": ["-registered_at"]},
        ),
    ]
