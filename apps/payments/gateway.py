import json
import logging

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SIGNATURE_TOLERANCE_SECONDS = 300


class InvalidWebhook(Exception):
    pass


class StripeGateway:
    """Stripe Checkout for pending orders plus webhook verification.

    The API key is passed per call so the module-level ``stripe.api_key``
    is never mutated.
    """

    def __init__(self, *, api_key, webhook_secret, currency, site_url):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.site_url = site_url.rstrip("/")

    def _line_items(self, order):
        product = "Business" if order.product_type == "business" else "Personal"
        plural = "s" if order.quantity > 1 else ""
        items = [
            {
                "price_data": {
                    "currency": self.currency,
                    "product_data": {
                        "name": f"{product} Magnets x{order.quantity}",
                        "description": f"Custom {order.quantity} photo magnet{plural} (63.5mm x 63.5mm)",
                    },
                    "unit_amount": order.subtotal,
                },
                "quantity": 1,
            }
        ]
        if order.shipping_cost > 0:
            items.append(
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": "Shipping", "description": "Australia-wide flat rate shipping"},
                        "unit_amount": order.shipping_cost,
                    },
                    "quantity": 1,
                }
            )
        return items

    def _discounts(self, order):
        if order.discount_amount <= 0 or not order.promo_code_used:
            return []
        coupon = stripe.Coupon.create(
            amount_off=order.discount_amount,
            currency=self.currency,
            name=f"Promo: {order.promo_code_used}",
            duration="once",
            api_key=self.api_key,
        )
        return [{"coupon": coupon.id}]

    def create_checkout_session(self, order):
        """Create a hosted checkout session for ``order``. Raises stripe.StripeError."""
        metadata = {"orderId": str(order.id), "orderNumber": order.order_number}
        params = {
            "payment_method_types": ["card"],
            "line_items": self._line_items(order),
            "mode": "payment",
            "success_url": f"{self.site_url}/track.html?order={order.order_number}&success=true",
            "cancel_url": f"{self.site_url}/?cancelled=true&order={order.id}",
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
        }
        discounts = self._discounts(order)
        if discounts:
            params["discounts"] = discounts
        if order.customer_email:
            params["customer_email"] = order.customer_email
        session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        logger.info("Created checkout session %s for order %s", session.id, order.order_number)
        return session

    def parse_event(self, payload, signature):
        """Verify a webhook delivery and return the decoded event dict."""
        if not self.webhook_secret:
            raise InvalidWebhook("Webhook secret is not configured.")
        if not signature:
            raise InvalidWebhook("Missing Stripe-Signature header.")
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, self.webhook_secret, SIGNATURE_TOLERANCE_SECONDS
            )
        except stripe.SignatureVerificationError as exc:
            raise InvalidWebhook(str(exc)) from exc
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise InvalidWebhook("Webhook payload is not valid JSON.") from exc


def get_payment_gateway():
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.CURRENCY,
        site_url=settings.SITE_URL,
    )
