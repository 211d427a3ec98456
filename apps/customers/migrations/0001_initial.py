import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("phone", models.CharField(max_length=50, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("default_address_line1", models.CharField(blank=True, max_length=255)),
                ("default_address_line2", models.CharField(blank=True, max_length=255)),
                ("default_city", models.CharField(blank=True, max_length=120)),
                ("default_state", models.CharField(blank=True, max_length=60)),
                ("default_postcode", models.CharField(blank=True, max_length=20)),
                ("default_country", models.CharField(default="Australia", max_length=60)),
                ("order_count", models.PositiveIntegerField(default=0)),
                ("total_spent", models.PositiveBigIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="customers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["email"], name="customer_email_idx"),
                    models.Index(fields=["name"], name="customer_name_idx"),
                ],
            },
        ),
    ]
