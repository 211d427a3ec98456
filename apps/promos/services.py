from dataclasses import dataclass

from django.db.models import F
from django.utils import timezone

from apps.promos.models import DiscountType, PromoCode, PromoRedemption, normalize_code


class PromoRejection:
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    NOT_YET_ACTIVE = "NOT_YET_ACTIVE"
    LIMIT_REACHED = "LIMIT_REACHED"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    CUSTOMER_LIMIT_REACHED = "CUSTOMER_LIMIT_REACHED"


REJECTION_MESSAGES = {
    PromoRejection.NOT_FOUND: "Invalid promo code.",
    PromoRejection.EXPIRED: "Promo code has expired.",
    PromoRejection.NOT_YET_ACTIVE: "Promo code is not yet active.",
    PromoRejection.LIMIT_REACHED: "Promo code has reached its usage limit.",
    PromoRejection.BELOW_MINIMUM: "Order subtotal is below the minimum for this promo code.",
    PromoRejection.CUSTOMER_LIMIT_REACHED: "You have already used this promo code.",
}


class PromoRejected(Exception):
    def __init__(self, reason, promo=None):
        super().__init__(REJECTION_MESSAGES[reason])
        self.reason = reason
        self.promo = promo

    @property
    def message(self):
        return REJECTION_MESSAGES[self.reason]


@dataclass(frozen=True)
class PromoQuote:
    promo: PromoCode
    discount: int


def compute_discount(promo, subtotal):
    if promo.discount_type == DiscountType.PERCENTAGE:
        return subtotal * promo.discount_value // 100
    return promo.discount_value


def customer_redemptions(promo, customer_id):
    return PromoRedemption.objects.filter(promo_code=promo, customer_id=customer_id).count()


def validate_promo(code, subtotal, customer_id=None, now=None):
    """Check a promo code against a subtotal; first failing rule wins.

    Raises PromoRejected. The returned discount is not clamped; callers clamp
    the order total at zero.
    """
    now = now or timezone.now()
    promo = PromoCode.objects.filter(code=normalize_code(code), is_active=True).first()
    if promo is None:
        raise PromoRejected(PromoRejection.NOT_FOUND)
    if promo.expires_at and promo.expires_at < now:
        raise PromoRejected(PromoRejection.EXPIRED, promo)
    if promo.starts_at and promo.starts_at > now:
        raise PromoRejected(PromoRejection.NOT_YET_ACTIVE, promo)
    if promo.max_uses is not None and promo.uses_count >= promo.max_uses:
        raise PromoRejected(PromoRejection.LIMIT_REACHED, promo)
    if subtotal < promo.min_order_amount:
        raise PromoRejected(PromoRejection.BELOW_MINIMUM, promo)
    if customer_id and promo.max_uses_per_customer:
        if customer_redemptions(promo, customer_id) >= promo.max_uses_per_customer:
            raise PromoRejected(PromoRejection.CUSTOMER_LIMIT_REACHED, promo)
    return PromoQuote(promo=promo, discount=compute_discount(promo, subtotal))


def redeem(order):
    """Count a paid order's promo usage. Must run inside the payment transaction."""
    if not order.promo_code_id:
        return None
    PromoCode.objects.filter(pk=order.promo_code_id).update(uses_count=F("uses_count") + 1)
    redemption, _ = PromoRedemption.objects.get_or_create(
        order=order,
        defaults={
            "promo_code_id": order.promo_code_id,
            "customer_id": order.customer_id,
            "discount_applied": order.discount_amount,
        },
    )
    return redemption
