import uuid

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    PRINTING = "printing", "Printing"
    SHIPPED = "shipped", "Shipped"
    READY_PICKUP = "ready_pickup", "Ready for pickup"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    ARCHIVED = "archived", "Archived"


# Statuses staff may set directly. Payment is the only way into PAID.
STAFF_STATUSES = [
    OrderStatus.PRINTING,
    OrderStatus.SHIPPED,
    OrderStatus.READY_PICKUP,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.ARCHIVED,
]
TERMINAL_STATUSES = {OrderStatus.CANCELLED, OrderStatus.ARCHIVED}

# Milestone stamped the first time an order enters the status.
MILESTONE_FIELDS = {
    OrderStatus.PRINTING: "printed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.READY_PICKUP: "shipped_at",
    OrderStatus.COMPLETED: "completed_at",
}


class ShippingType(models.TextChoices):
    DELIVERY = "delivery", "Delivery"
    PICKUP = "pickup", "Pickup"


class ProductType(models.TextChoices):
    PERSONAL = "personal", "Personal magnets"
    BUSINESS = "business", "Business magnets"


class DailyOrderSequence(models.Model):
    day = models.DateField(primary_key=True)
    last_value = models.PositiveIntegerField(default=0)


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey(
        "customers.Customer", on_delete=models.SET_NULL, null=True, blank=True, related_name="orders"
    )

    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=50)
    customer_email = models.EmailField(blank=True)

    shipping_type = models.CharField(max_length=16, choices=ShippingType.choices, default=ShippingType.DELIVERY)
    shipping_address_line1 = models.CharField(max_length=255, blank=True)
    shipping_address_line2 = models.CharField(max_length=255, blank=True)
    shipping_city = models.CharField(max_length=120, blank=True)
    shipping_state = models.CharField(max_length=60, blank=True)
    shipping_postcode = models.CharField(max_length=20, blank=True)
    shipping_country = models.CharField(max_length=60, default="Australia")

    is_gift = models.BooleanField(default=False)
    gift_message = models.TextField(blank=True)

    product_type = models.CharField(max_length=16, choices=ProductType.choices)
    quantity = models.PositiveIntegerField()

    subtotal = models.PositiveIntegerField()
    shipping_cost = models.PositiveIntegerField(default=0)
    discount_amount = models.PositiveIntegerField(default=0)
    promo_code = models.ForeignKey(
        "promos.PromoCode", on_delete=models.PROTECT, null=True, blank=True, related_name="orders"
    )
    promo_code_used = models.CharField(max_length=40, blank=True)
    total = models.IntegerField()

    notes = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)

    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    payment_intent_id = models.CharField(max_length=255, blank=True)
    checkout_session_id = models.CharField(max_length=255, blank=True)
    tracking_number = models.CharField(max_length=120, blank=True)
    carrier = models.CharField(max_length=120, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    printed_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["customer", "created_at"], name="order_customer_created_idx"),
            models.Index(fields=["checkout_session_id"], name="order_checkout_session_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name="order_quantity_gt_zero"),
            models.CheckConstraint(condition=models.Q(total__gte=0), name="order_total_gte_zero"),
        ]

    def __str__(self):
        return self.order_number

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    file_path = models.CharField(max_length=255)
    original_filename = models.CharField(max_length=255)
    file_size = models.PositiveIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True)
    position = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["order", "position"], name="orderitem_unique_position"),
        ]
