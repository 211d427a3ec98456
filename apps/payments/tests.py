import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from unittest import mock

import stripe
from django.db import DatabaseError
from rest_framework.test import APITestCase

from apps.customers.models import Customer
from apps.orders.models import Order, OrderStatus
from apps.promos.models import PromoCode, PromoRedemption

WEBHOOK_SECRET = "whsec_test_secret"


def sign(payload, secret=WEBHOOK_SECRET, timestamp=None):
    timestamp = int(timestamp or time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def checkout_completed(order_id, session_id="cs_test_1", payment_intent="pi_test_1"):
    return {
        "id": "evt_test_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "payment_intent": payment_intent,
                "metadata": {"orderId": str(order_id)},
            }
        },
    }


class PaymentFlowTests(APITestCase):
    def create_order(self, **overrides):
        payload = {
            "customer_name": "Jess Carter",
            "customer_phone": "0412 345 678",
            "customer_email": "jess@example.com",
            "shipping_type": "pickup",
            "product_type": "personal",
            "quantity": 6,
        }
        payload.update(overrides)
        response = self.client.post("/api/v1/orders/", payload, format="json")
        self.assertEqual(response.status_code, 201)
        return response.data

    def deliver(self, event, signature=None):
        payload = json.dumps(event)
        return self.client.generic(
            "POST",
            "/api/v1/payments/webhook/",
            payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=signature if signature is not None else sign(payload),
        )

    @mock.patch("apps.notifications.services.order_paid")
    def test_pickup_order_paid_end_to_end(self, order_paid):
        created = self.create_order()
        self.assertEqual(created["subtotal"], 4800)
        self.assertEqual(created["shipping_cost"], 0)
        self.assertEqual(created["total"], 4800)
        self.assertEqual(created["status"], "pending")

        response = self.deliver(checkout_completed(created["order_id"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"received": True})

        order = Order.objects.get(pk=created["order_id"])
        self.assertEqual(order.status, OrderStatus.PAID)
        self.assertIsNotNone(order.paid_at)
        self.assertEqual(order.payment_intent_id, "pi_test_1")
        self.assertEqual(order.checkout_session_id, "cs_test_1")

        customer = Customer.objects.get(phone="0412345678")
        self.assertEqual(customer.total_spent, 4800)
        self.assertEqual(customer.order_count, 1)
        order_paid.assert_called_once()

    @mock.patch("apps.notifications.services.order_paid")
    def test_duplicate_delivery_is_applied_once(self, order_paid):
        PromoCode.objects.create(code="FIVE", discount_type="fixed", discount_value=500)
        created = self.create_order(promo_code="FIVE")
        event = checkout_completed(created["order_id"])

        self.assertEqual(self.deliver(event).status_code, 200)
        paid_at = Order.objects.get(pk=created["order_id"]).paid_at
        self.assertEqual(self.deliver(event).status_code, 200)

        order = Order.objects.get(pk=created["order_id"])
        self.assertEqual(order.paid_at, paid_at)
        customer = Customer.objects.get(phone="0412345678")
        self.assertEqual(customer.order_count, 1)
        self.assertEqual(customer.total_spent, 4300)
        self.assertEqual(PromoCode.objects.get(code="FIVE").uses_count, 1)
        self.assertEqual(PromoRedemption.objects.filter(order=order).count(), 1)
        order_paid.assert_called_once()

    @mock.patch("apps.notifications.services.order_paid")
    def test_per_customer_limit_counts_paid_redemptions(self, _paid):
        PromoCode.objects.create(code="ONCE", discount_type="percentage", discount_value=10)
        first = self.create_order(promo_code="ONCE")
        self.deliver(checkout_completed(first["order_id"]))

        response = self.client.post(
            "/api/v1/orders/",
            {
                "customer_name": "Jess Carter",
                "customer_phone": "0412345678",
                "shipping_type": "pickup",
                "product_type": "personal",
                "quantity": 6,
                "promo_code": "ONCE",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "CUSTOMER_LIMIT_REACHED")

    @mock.patch("apps.notifications.services.order_paid")
    def test_payment_after_cancellation_changes_nothing(self, order_paid):
        created = self.create_order()
        Order.objects.filter(pk=created["order_id"]).update(status=OrderStatus.CANCELLED)

        self.assertEqual(self.deliver(checkout_completed(created["order_id"])).status_code, 200)
        self.assertEqual(Order.objects.get(pk=created["order_id"]).status, OrderStatus.CANCELLED)
        self.assertEqual(Customer.objects.get(phone="0412345678").total_spent, 0)
        order_paid.assert_not_called()

    def test_bad_signatures_are_rejected(self):
        created = self.create_order()
        event = checkout_completed(created["order_id"])
        payload = json.dumps(event)

        self.assertEqual(self.deliver(event, signature="").status_code, 400)
        self.assertEqual(self.deliver(event, signature=sign(payload, secret="whsec_other")).status_code, 400)
        stale = sign(payload, timestamp=time.time() - 3600)
        self.assertEqual(self.deliver(event, signature=stale).status_code, 400)
        self.assertEqual(Order.objects.get(pk=created["order_id"]).status, OrderStatus.PENDING)

    def test_other_events_and_missing_metadata_are_acknowledged(self):
        response = self.deliver({"id": "evt_2", "type": "payment_intent.created", "data": {"object": {}}})
        self.assertEqual(response.status_code, 200)

        event = checkout_completed("x")
        event["data"]["object"]["metadata"] = {}
        self.assertEqual(self.deliver(event).status_code, 200)

        unknown = checkout_completed("00000000-0000-0000-0000-000000000000")
        self.assertEqual(self.deliver(unknown).status_code, 200)

    @mock.patch("apps.orders.services.record_payment", side_effect=DatabaseError("boom"))
    def test_processing_failure_returns_500_and_rolls_back(self, _record):
        created = self.create_order()
        response = self.deliver(checkout_completed(created["order_id"]))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(Order.objects.get(pk=created["order_id"]).status, OrderStatus.PENDING)

    @mock.patch("stripe.checkout.Session.create")
    def test_checkout_session(self, create_session):
        create_session.return_value = SimpleNamespace(id="cs_test_9", url="https://checkout.stripe.test/cs_test_9")
        created = self.create_order(shipping_type="delivery", shipping_address={
            "line1": "1 Lachlan St", "city": "Forbes", "state": "NSW", "postcode": "2871",
        })

        response = self.client.post("/api/v1/payments/checkout/", {"order_id": created["order_id"]}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["url"], "https://checkout.stripe.test/cs_test_9")

        kwargs = create_session.call_args.kwargs
        self.assertEqual(kwargs["api_key"], "sk_test_dummy")
        self.assertEqual(kwargs["metadata"]["orderId"], created["order_id"])
        self.assertEqual([item["price_data"]["unit_amount"] for item in kwargs["line_items"]], [4800, 800])
        self.assertEqual(kwargs["customer_email"], "jess@example.com")
        self.assertNotIn("discounts", kwargs)
        self.assertEqual(Order.objects.get(pk=created["order_id"]).checkout_session_id, "cs_test_9")

    @mock.patch("stripe.Coupon.create")
    @mock.patch("stripe.checkout.Session.create")
    def test_checkout_applies_discount_as_coupon(self, create_session, create_coupon):
        create_session.return_value = SimpleNamespace(id="cs_test_3", url="https://checkout.stripe.test/cs_test_3")
        create_coupon.return_value = SimpleNamespace(id="coupon_1")
        PromoCode.objects.create(code="TEN", discount_type="percentage", discount_value=10)
        created = self.create_order(promo_code="TEN")

        response = self.client.post("/api/v1/payments/checkout/", {"order_id": created["order_id"]}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(create_coupon.call_args.kwargs["amount_off"], 480)
        self.assertEqual(create_session.call_args.kwargs["discounts"], [{"coupon": "coupon_1"}])

    @mock.patch("stripe.checkout.Session.create", side_effect=stripe.APIConnectionError("network down"))
    def test_checkout_errors(self, _create_session):
        missing = self.client.post(
            "/api/v1/payments/checkout/", {"order_id": "00000000-0000-0000-0000-000000000000"}, format="json"
        )
        self.assertEqual(missing.status_code, 404)

        created = self.create_order()
        upstream = self.client.post("/api/v1/payments/checkout/", {"order_id": created["order_id"]}, format="json")
        self.assertEqual(upstream.status_code, 502)
        self.assertEqual(upstream.data["code"], "upstream_error")

        Order.objects.filter(pk=created["order_id"]).update(status=OrderStatus.PAID)
        processed = self.client.post("/api/v1/payments/checkout/", {"order_id": created["order_id"]}, format="json")
        self.assertEqual(processed.status_code, 409)
