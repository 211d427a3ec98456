"""Tiered pricing and order totals, in minor currency units.

Every unit in an order is charged the unit price of the tier the total
quantity falls in. The same functions price previews and real orders.
"""
from dataclasses import dataclass

from django.conf import settings

from apps.orders.models import ProductType, ShippingType


@dataclass(frozen=True)
class PriceTier:
    min_qty: int
    max_qty: int | None
    unit_price: int
    label: str

    def contains(self, quantity):
        return quantity >= self.min_qty and (self.max_qty is None or quantity <= self.max_qty)


STANDARD_TIERS = (
    PriceTier(min_qty=1, max_qty=5, unit_price=1000, label="$10 each"),
    PriceTier(min_qty=6, max_qty=11, unit_price=800, label="$8 each (6-pack)"),
    PriceTier(min_qty=12, max_qty=None, unit_price=700, label="$7 each (12-pack)"),
)

PRICE_TIERS = {
    ProductType.PERSONAL: STANDARD_TIERS,
    ProductType.BUSINESS: STANDARD_TIERS,
}


@dataclass(frozen=True)
class Quote:
    subtotal: int
    shipping_cost: int
    discount_amount: int
    total: int


def tiers_for(product_type):
    return PRICE_TIERS.get(product_type, STANDARD_TIERS)


def unit_price(quantity, product_type=ProductType.PERSONAL):
    for tier in reversed(tiers_for(product_type)):
        if quantity >= tier.min_qty:
            return tier.unit_price
    return tiers_for(product_type)[0].unit_price


def price(quantity, product_type=ProductType.PERSONAL):
    """Subtotal for ``quantity`` units. Callers validate quantity first."""
    return quantity * unit_price(quantity, product_type)


def shipping_cost(shipping_type):
    if shipping_type == ShippingType.PICKUP:
        return 0
    return settings.SHIPPING_FEE


def capped_discount(subtotal, shipping, discount):
    """A discount never exceeds what the order would otherwise cost."""
    return min(discount, subtotal + shipping)


def order_total(subtotal, shipping, discount):
    return max(0, subtotal + shipping - discount)


def quote(quantity, product_type, shipping_type, discount=0):
    subtotal = price(quantity, product_type)
    shipping = shipping_cost(shipping_type)
    discount = capped_discount(subtotal, shipping, discount)
    return Quote(
        subtotal=subtotal,
        shipping_cost=shipping,
        discount_amount=discount,
        total=order_total(subtotal, shipping, discount),
    )
