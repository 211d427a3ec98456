import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        ("promos", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="DailyOrderSequence",
            fields=[
                ("day", models.DateField(primary_key=True, serialize=False)),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(max_length=32, unique=True)),
                ("customer_name", models.CharField(max_length=255)),
                ("customer_phone", models.CharField(max_length=50)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                (
                    "shipping_type",
                    models.CharField(
                        choices=[("delivery", "Delivery"), ("pickup", "Pickup")],
                        default="delivery",
                        max_length=16,
                    ),
                ),
                ("shipping_address_line1", models.CharField(blank=True, max_length=255)),
                ("shipping_address_line2", models.CharField(blank=True, max_length=255)),
                ("shipping_city", models.CharField(blank=True, max_length=120)),
                ("shipping_state", models.CharField(blank=True, max_length=60)),
                ("shipping_postcode", models.CharField(blank=True, max_length=20)),
                ("shipping_country", models.CharField(default="Australia", max_length=60)),
                ("is_gift", models.BooleanField(default=False)),
                ("gift_message", models.TextField(blank=True)),
                (
                    "product_type",
                    models.CharField(
                        choices=[("personal", "Personal magnets"), ("business", "Business magnets")],
                        max_length=16,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("subtotal", models.PositiveIntegerField()),
                ("shipping_cost", models.PositiveIntegerField(default=0)),
                ("discount_amount", models.PositiveIntegerField(default=0)),
                ("promo_code_used", models.CharField(blank=True, max_length=40)),
                ("total", models.IntegerField()),
                ("notes", models.TextField(blank=True)),
                ("admin_notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("printing", "Printing"),
                            ("shipped", "Shipped"),
                            ("ready_pickup", "Ready for pickup"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("archived", "Archived"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("payment_intent_id", models.CharField(blank=True, max_length=255)),
                ("checkout_session_id", models.CharField(blank=True, max_length=255)),
                ("tracking_number", models.CharField(blank=True, max_length=120)),
                ("carrier", models.CharField(blank=True, max_length=120)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("printed_at", models.DateTimeField(blank=True, null=True)),
                ("shipped_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="customers.customer",
                    ),
                ),
                (
                    "promo_code",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="promos.promocode",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
                    models.Index(fields=["customer", "created_at"], name="order_customer_created_idx"),
                    models.Index(fields=["checkout_session_id"], name="order_checkout_session_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="order_quantity_gt_zero"),
                    models.CheckConstraint(condition=models.Q(("total__gte", 0)), name="order_total_gte_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("file_path", models.CharField(max_length=255)),
                ("original_filename", models.CharField(max_length=255)),
                ("file_size", models.PositiveIntegerField(blank=True, null=True)),
                ("mime_type", models.CharField(blank=True, max_length=100)),
                ("position", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(fields=("order", "position"), name="orderitem_unique_position"),
                ],
            },
        ),
    ]
