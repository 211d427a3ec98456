import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError

from apps.audit.services import record_audit
from apps.common.exceptions import Conflict, UpstreamError
from apps.common.storage import get_photo_store, order_photo_key
from apps.customers.services import record_payment, resolve_or_create
from apps.notifications import services as notifications
from apps.orders import pricing
from apps.orders.models import (
    MILESTONE_FIELDS,
    STAFF_STATUSES,
    DailyOrderSequence,
    Order,
    OrderItem,
    OrderStatus,
    ShippingType,
)
from apps.promos.exceptions import PromoCodeRejected
from apps.promos.services import PromoRejected, redeem, validate_promo

logger = logging.getLogger(__name__)

DISPATCH_STATUSES = {OrderStatus.SHIPPED, OrderStatus.READY_PICKUP}


def allocate_order_number(day=None):
    """Reserve the next number for ``day`` (shop-local date).

    Must run inside the transaction that inserts the order: the sequence row
    stays locked until commit, and a rollback releases the number again.
    """
    day = day or timezone.localdate()
    DailyOrderSequence.objects.get_or_create(day=day)
    DailyOrderSequence.objects.filter(day=day).update(last_value=F("last_value") + 1)
    value = DailyOrderSequence.objects.values_list("last_value", flat=True).get(day=day)
    return f"{settings.ORDER_NUMBER_PREFIX}-{day:%Y%m%d}-{value:03d}"


def _shipping_fields(shipping_type, address):
    if shipping_type != ShippingType.DELIVERY or not address:
        return {}
    return {
        "shipping_address_line1": address.get("line1", ""),
        "shipping_address_line2": address.get("line2", ""),
        "shipping_city": address.get("city", ""),
        "shipping_state": address.get("state", ""),
        "shipping_postcode": address.get("postcode", ""),
        "shipping_country": address.get("country") or "Australia",
    }


def create_order(
    *,
    customer_name,
    customer_phone,
    product_type,
    quantity,
    shipping_type=ShippingType.DELIVERY,
    shipping_address=None,
    customer_email="",
    is_gift=False,
    gift_message="",
    notes="",
    promo_code="",
):
    """Price and persist a pending order.

    Totals are always computed here; client-supplied amounts are never trusted.
    An unusable promo code rejects the whole order.
    """
    subtotal = pricing.price(quantity, product_type)
    shipping = pricing.shipping_cost(shipping_type)

    with transaction.atomic():
        customer = resolve_or_create(
            phone=customer_phone,
            name=customer_name,
            email=customer_email,
            address=shipping_address if shipping_type == ShippingType.DELIVERY else None,
        )

        promo = None
        discount = 0
        if promo_code:
            try:
                promo_quote = validate_promo(promo_code, subtotal, customer_id=customer.id)
            except PromoRejected as rejection:
                raise PromoCodeRejected(rejection, not_found_status=status.HTTP_400_BAD_REQUEST)
            promo = promo_quote.promo
            discount = pricing.capped_discount(subtotal, shipping, promo_quote.discount)

        order = Order.objects.create(
            order_number=allocate_order_number(),
            customer=customer,
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_email=customer_email or "",
            shipping_type=shipping_type,
            is_gift=is_gift,
            gift_message=gift_message if is_gift else "",
            product_type=product_type,
            quantity=quantity,
            subtotal=subtotal,
            shipping_cost=shipping,
            discount_amount=discount,
            promo_code=promo,
            promo_code_used=promo.code if promo else "",
            total=pricing.order_total(subtotal, shipping, discount),
            notes=notes or "",
            **_shipping_fields(shipping_type, shipping_address),
        )

    logger.info("Created order %s for customer %s (total=%s)", order.order_number, customer.id, order.total)
    return order


def confirm_payment(order_id, *, payment_intent_id="", checkout_session_id=""):
    """Move a pending order to paid exactly once.

    Returns ``(order, applied)``. ``applied`` is False when the order was
    already past pending, in which case nothing else changes. Raises
    Order.DoesNotExist for unknown ids.
    """
    with transaction.atomic():
        now = timezone.now()
        applied = (
            Order.objects.filter(pk=order_id, status=OrderStatus.PENDING).update(
                status=OrderStatus.PAID,
                paid_at=now,
                payment_intent_id=payment_intent_id or "",
                checkout_session_id=checkout_session_id or "",
                updated_at=now,
            )
            == 1
        )
        order = Order.objects.get(pk=order_id)
        if applied:
            if order.customer_id:
                record_payment(order.customer_id, order.total)
            redeem(order)

    if not applied:
        logger.info("Payment for order %s already processed (status=%s)", order.order_number, order.status)
        return order, False

    logger.info("Order %s paid (total=%s)", order.order_number, order.total)
    try:
        notifications.order_paid(order)
    except Exception:
        logger.exception("Paid notifications failed for order %s", order.order_number)
    return order, True


def apply_status_change(order, *, actor, status=None, tracking_number=None, carrier=None, admin_notes=None, request=None):
    """Apply a staff status/tracking update and audit it.

    Milestone timestamps are stamped on first entry only. Cancelled and
    archived orders cannot move to another status.
    """
    if status is not None and status not in STAFF_STATUSES:
        raise ValidationError({"status": [f"Status cannot be set to {status}."]})

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        previous = order.status
        if status is not None and status != previous and order.is_terminal:
            raise Conflict(f"Order is {previous} and can no longer change status.")

        changed = ["updated_at"]
        if status is not None and status != previous:
            order.status = status
            changed.append("status")
            milestone = MILESTONE_FIELDS.get(status)
            if milestone and getattr(order, milestone) is None:
                setattr(order, milestone, timezone.now())
                changed.append(milestone)
        for field, value in (("tracking_number", tracking_number), ("carrier", carrier), ("admin_notes", admin_notes)):
            if value is not None:
                setattr(order, field, value)
                changed.append(field)
        order.save(update_fields=changed)

    if order.status != previous:
        logger.info("Order %s status %s -> %s", order.order_number, previous, order.status)

    details = {"from": previous, "to": order.status}
    if tracking_number:
        details["tracking_number"] = tracking_number
    record_audit(
        actor=actor,
        action="orders.update_status",
        target_type="order",
        target_id=order.id,
        details=details,
        request=request,
    )

    if order.status != previous and order.status in DISPATCH_STATUSES:
        try:
            notifications.order_dispatched(order)
        except Exception:
            logger.exception("Dispatch notification failed for order %s", order.order_number)
    return order


def delete_order(order, *, actor, request=None):
    """Delete an order with its items and stored photos."""
    keys = list(order.items.values_list("file_path", flat=True))
    order_id = order.id
    order_number = order.order_number
    with transaction.atomic():
        order.delete()
    get_photo_store().delete_many(keys)
    record_audit(
        actor=actor,
        action="orders.delete",
        target_type="order",
        target_id=order_id,
        details={"order_number": order_number, "photos": len(keys)},
        request=request,
    )
    logger.info("Deleted order %s and %s photos", order_number, len(keys))


def add_photo(order_id, *, position, upload):
    """Store one uploaded photo at ``position`` of a pending order."""
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        raise NotFound("Order not found.")
    if order.status != OrderStatus.PENDING:
        raise Conflict("Photos can only be added to pending orders.")
    if position >= order.quantity:
        raise ValidationError({"position": [f"Position must be between 0 and {order.quantity - 1}."]})
    if order.items.filter(position=position).exists():
        raise Conflict(f"A photo already exists at position {position}.")

    store = get_photo_store()
    try:
        key = store.save(order_photo_key(order.id, position, upload.name), upload)
    except FileExistsError:
        raise Conflict(f"A photo already exists at position {position}.")
    except OSError:
        logger.exception("Failed to store photo for order %s", order.order_number)
        raise UpstreamError("Failed to store the photo.")

    try:
        with transaction.atomic():
            item = OrderItem.objects.create(
                order=order,
                file_path=key,
                original_filename=upload.name,
                file_size=upload.size,
                mime_type=getattr(upload, "content_type", "") or "",
                position=position,
            )
    except IntegrityError:
        store.delete_many([key])
        raise Conflict(f"A photo already exists at position {position}.")
    return item
