from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.customers.models import Customer, normalize_phone

ADDRESS_FIELDS = {
    "line1": "default_address_line1",
    "line2": "default_address_line2",
    "city": "default_city",
    "state": "default_state",
    "postcode": "default_postcode",
}


def _address_values(address):
    address = address or {}
    return {field: str(address.get(key) or "").strip() for key, field in ADDRESS_FIELDS.items()}


def resolve_or_create(*, phone, name, email=None, address=None):
    """Match a customer by phone, refreshing their contact snapshot, or create one.

    Order and spend aggregates are never touched here; they move only when a
    payment is confirmed.
    """
    normalized = normalize_phone(phone)
    if not normalized:
        raise ValueError("phone must contain at least one digit")

    snapshot = {"name": str(name).strip(), "email": str(email or "").strip(), **_address_values(address)}

    customer = Customer.objects.filter(phone=normalized).first()
    if customer is None:
        try:
            with transaction.atomic():
                return Customer.objects.create(phone=normalized, **snapshot)
        except IntegrityError:
            # Another request created the same phone first; fall through to update it.
            customer = Customer.objects.get(phone=normalized)

    Customer.objects.filter(pk=customer.pk).update(updated_at=timezone.now(), **snapshot)
    customer.refresh_from_db()
    return customer


def record_payment(customer_id, amount):
    Customer.objects.filter(pk=customer_id).update(
        order_count=F("order_count") + 1,
        total_spent=F("total_spent") + amount,
        updated_at=timezone.now(),
    )
