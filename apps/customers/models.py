import re
import uuid

from django.db import models


def normalize_phone(value):
    raw = str(value or "").strip()
    digits = re.sub(r"\D+", "", raw)
    if not digits:
        return ""
    return f"+{digits}" if raw.startswith("+") else digits


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey("accounts.User", on_delete=models.SET_NULL, null=True, blank=True, related_name="customers")
    phone = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    default_address_line1 = models.CharField(max_length=255, blank=True)
    default_address_line2 = models.CharField(max_length=255, blank=True)
    default_city = models.CharField(max_length=120, blank=True)
    default_state = models.CharField(max_length=60, blank=True)
    default_postcode = models.CharField(max_length=20, blank=True)
    default_country = models.CharField(max_length=60, default="Australia")
    order_count = models.PositiveIntegerField(default=0)
    total_spent = models.PositiveBigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["email"], name="customer_email_idx"),
            models.Index(fields=["name"], name="customer_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})"
