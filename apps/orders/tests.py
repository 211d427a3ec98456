import io
import threading
import zipfile
from datetime import date
from unittest import mock
from urllib.parse import urlparse

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import connection
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.accounts.models import AdminMembership, StaffRole
from apps.audit.models import AdminLog
from apps.common.storage import get_photo_store
from apps.customers.models import Customer
from apps.orders import pricing
from apps.orders.models import DailyOrderSequence, Order, OrderStatus
from apps.orders.services import allocate_order_number, confirm_payment, create_order
from apps.promos.models import PromoCode, PromoRedemption

User = get_user_model()

ADDRESS = {"line1": "1 Lachlan St", "city": "Forbes", "state": "NSW", "postcode": "2871"}


def photo(name="photo.jpg", content=b"\xff\xd8\xff fake jpeg", content_type="image/jpeg"):
    return SimpleUploadedFile(name, content, content_type=content_type)


class PricingTests(TestCase):
    def test_tier_boundaries(self):
        self.assertEqual(pricing.price(1, "personal"), 1000)
        self.assertEqual(pricing.price(5, "personal"), 5000)
        self.assertEqual(pricing.price(6, "personal"), 4800)
        self.assertEqual(pricing.price(11, "personal"), 8800)
        self.assertEqual(pricing.price(12, "personal"), 8400)
        self.assertEqual(pricing.price(100, "business"), 70000)

    def test_product_type_does_not_change_price(self):
        for quantity in (1, 5, 6, 11, 12, 40):
            self.assertEqual(pricing.price(quantity, "personal"), pricing.price(quantity, "business"))

    def test_shipping_and_total(self):
        self.assertEqual(pricing.shipping_cost("delivery"), 800)
        self.assertEqual(pricing.shipping_cost("pickup"), 0)
        self.assertEqual(pricing.order_total(1000, 800, 5000), 0)

        quote = pricing.quote(12, "personal", "delivery", discount=840)
        self.assertEqual(quote.subtotal, 8400)
        self.assertEqual(quote.total, 8400 + 800 - 840)

        quote = pricing.quote(1, "personal", "delivery", discount=5000)
        self.assertEqual(quote.discount_amount, 1800)
        self.assertEqual(quote.total, quote.subtotal + quote.shipping_cost - quote.discount_amount)

    @override_settings(SHIPPING_FEE=1200)
    def test_shipping_fee_follows_settings(self):
        self.assertEqual(pricing.shipping_cost("delivery"), 1200)


class OrderNumberTests(TestCase):
    def test_numbers_are_dense_per_day(self):
        day = date(2026, 3, 14)
        numbers = [allocate_order_number(day) for _ in range(3)]
        self.assertEqual(numbers, ["HS-20260314-001", "HS-20260314-002", "HS-20260314-003"])
        self.assertEqual(allocate_order_number(date(2026, 3, 15)), "HS-20260315-001")
        self.assertEqual(DailyOrderSequence.objects.get(day=day).last_value, 3)

    def test_created_orders_use_local_date(self):
        first = create_order(customer_name="Ann", customer_phone="0400 000 001", product_type="personal", quantity=1, shipping_type="pickup")
        second = create_order(customer_name="Bob", customer_phone="0400 000 002", product_type="personal", quantity=1, shipping_type="pickup")
        prefix = f"HS-{timezone.localdate():%Y%m%d}-"
        self.assertEqual(first.order_number, f"{prefix}001")
        self.assertEqual(second.order_number, f"{prefix}002")

    @override_settings(ORDER_NUMBER_PREFIX="HX")
    def test_prefix_follows_settings(self):
        self.assertEqual(allocate_order_number(date(2026, 1, 2)), "HX-20260102-001")


class ConcurrentOrderNumberTests(TransactionTestCase):
    def test_parallel_allocations_are_unique(self):
        results = []
        errors = []

        def create(index):
            try:
                order = create_order(
                    customer_name=f"Buyer {index}",
                    customer_phone=f"04000000{index:02d}",
                    product_type="personal",
                    quantity=1,
                    shipping_type="pickup",
                )
                results.append(order.order_number)
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=create, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        suffixes = sorted(int(number.rsplit("-", 1)[1]) for number in results)
        self.assertEqual(suffixes, list(range(1, 9)))


class OrderApiTests(APITestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username="owner", email="owner@heartsnaps.test", password="owner123")
        self.admin = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="admin123")
        AdminMembership.objects.create(user=self.admin, role=StaffRole.ADMIN)
        self.super_admin = User.objects.create_user(username="super", email="super@heartsnaps.test", password="super123")
        AdminMembership.objects.create(user=self.super_admin, role=StaffRole.SUPER_ADMIN)

    def auth_as(self, username, password):
        response = self.client.post("/api/v1/auth/token/", {"username": username, "password": password}, format="json")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def create_order(self, **overrides):
        payload = {
            "customer_name": "Jess Carter",
            "customer_phone": "0412 345 678",
            "customer_email": "jess@example.com",
            "shipping_type": "delivery",
            "shipping_address": ADDRESS,
            "product_type": "personal",
            "quantity": 6,
        }
        payload.update(overrides)
        return self.client.post("/api/v1/orders/", payload, format="json")

    def upload(self, order_id, position, file=None):
        return self.client.post(
            f"/api/v1/orders/{order_id}/photos/",
            {"file": file or photo(), "position": position},
            format="multipart",
        )

    def test_public_pricing_and_quote(self):
        response = self.client.get("/api/v1/pricing/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["shipping_fee"], 800)
        self.assertEqual([tier["unit_price"] for tier in response.data["products"]["personal"]], [1000, 800, 700])

        quote = self.client.post(
            "/api/v1/pricing/quote/",
            {"quantity": 12, "product_type": "business", "shipping_type": "pickup"},
            format="json",
        )
        self.assertEqual(quote.status_code, 200)
        self.assertEqual(quote.data["total"], 8400)
        self.assertEqual(quote.data["unit_price"], 700)

    def test_quote_reports_rejected_promo_without_failing(self):
        quote = self.client.post(
            "/api/v1/pricing/quote/",
            {"quantity": 1, "shipping_type": "pickup", "promo_code": "nope"},
            format="json",
        )
        self.assertEqual(quote.status_code, 200)
        self.assertEqual(quote.data["promo"], {"valid": False, "code": "NOT_FOUND", "detail": "Invalid promo code."})
        self.assertEqual(quote.data["total"], 1000)

    def test_create_order_computes_totals_server_side(self):
        response = self.create_order(total=1, subtotal=1)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["subtotal"], 4800)
        self.assertEqual(response.data["shipping_cost"], 800)
        self.assertEqual(response.data["total"], 5600)
        self.assertEqual(response.data["status"], "pending")

        order = Order.objects.get(pk=response.data["order_id"])
        self.assertEqual(order.customer_phone, "0412345678")
        self.assertEqual(order.shipping_city, "Forbes")
        customer = Customer.objects.get(phone="0412345678")
        self.assertEqual(order.customer, customer)
        self.assertEqual(customer.order_count, 0)
        self.assertEqual(customer.total_spent, 0)

    def test_pickup_ignores_address_and_shipping_fee(self):
        response = self.create_order(shipping_type="pickup", shipping_address=None, quantity=12)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["shipping_cost"], 0)
        self.assertEqual(response.data["total"], 8400)

    def test_create_order_validation(self):
        self.assertEqual(self.create_order(shipping_address=None).status_code, 400)
        self.assertEqual(self.create_order(quantity=0).status_code, 400)
        self.assertEqual(self.create_order(customer_phone="call me").status_code, 400)
        self.assertEqual(self.create_order(product_type="poster").status_code, 400)
        self.assertEqual(Order.objects.count(), 0)

    def test_create_order_with_promo(self):
        PromoCode.objects.create(code="TENOFF", discount_type="percentage", discount_value=10)
        response = self.create_order(quantity=12, promo_code=" tenoff ")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["discount_amount"], 840)
        self.assertEqual(response.data["total"], 8400 + 800 - 840)
        order = Order.objects.get(pk=response.data["order_id"])
        self.assertEqual(order.promo_code_used, "TENOFF")
        self.assertEqual(order.promo_code.uses_count, 0)

    def test_fixed_promo_larger_than_order_is_capped(self):
        PromoCode.objects.create(code="BIG", discount_type="fixed", discount_value=50000)
        response = self.create_order(quantity=1, shipping_type="pickup", shipping_address=None, promo_code="BIG")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["discount_amount"], 1000)
        self.assertEqual(response.data["total"], 0)

        order = Order.objects.get(pk=response.data["order_id"])
        self.assertEqual(order.discount_amount, 1000)
        self.assertEqual(order.total, order.subtotal + order.shipping_cost - order.discount_amount)

        with mock.patch("apps.notifications.services.order_paid"):
            confirm_payment(order.id, payment_intent_id="pi_big")
        self.assertEqual(PromoRedemption.objects.get(order=order).discount_applied, 1000)

        quote = self.client.post(
            "/api/v1/pricing/quote/",
            {"quantity": 1, "product_type": "personal", "shipping_type": "delivery", "promo_code": "BIG"},
            format="json",
        )
        self.assertEqual(quote.data["discount_amount"], 1800)
        self.assertEqual(quote.data["promo"]["discount"], 1800)
        self.assertEqual(quote.data["total"], 0)

    def test_rejected_promo_rejects_order(self):
        response = self.create_order(promo_code="MISSING")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "NOT_FOUND")

        PromoCode.objects.create(code="BIGSPEND", discount_type="fixed", discount_value=500, min_order_amount=10000)
        response = self.create_order(promo_code="BIGSPEND")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "BELOW_MINIMUM")
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(Customer.objects.count(), 0)

    def test_photo_upload_positions(self):
        order_id = self.create_order(quantity=2).data["order_id"]

        first = self.upload(order_id, 0)
        self.assertEqual(first.status_code, 201)
        self.assertTrue(first.data["path"].startswith(f"orders/{order_id}/0_"))
        self.assertTrue(first.data["path"].endswith(".jpg"))

        self.assertEqual(self.upload(order_id, 0).status_code, 409)
        self.assertEqual(self.upload(order_id, 2).status_code, 400)
        self.assertEqual(self.upload(order_id, 1).status_code, 201)
        self.assertEqual(Order.objects.get(pk=order_id).items.count(), 2)

    def test_photo_upload_rejects_bad_files_and_unknown_orders(self):
        order_id = self.create_order().data["order_id"]
        pdf = photo("doc.pdf", b"%PDF", "application/pdf")
        self.assertEqual(self.upload(order_id, 0, pdf).status_code, 400)

        with override_settings(MAX_UPLOAD_BYTES=4):
            self.assertEqual(self.upload(order_id, 0).status_code, 400)

        missing = "00000000-0000-0000-0000-000000000000"
        self.assertEqual(self.upload(missing, 0).status_code, 404)

    def test_photo_upload_requires_pending_order(self):
        order_id = self.create_order().data["order_id"]
        Order.objects.filter(pk=order_id).update(status=OrderStatus.PAID)
        self.assertEqual(self.upload(order_id, 0).status_code, 409)

    def test_preview_url_serves_file(self):
        order_id = self.create_order(quantity=1).data["order_id"]
        uploaded = self.upload(order_id, 0, photo(content=b"magnet-bytes"))
        path = urlparse(uploaded.data["preview_url"]).path

        response = self.client.get(path)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(b"".join(response.streaming_content), b"magnet-bytes")

        self.assertEqual(self.client.get("/api/v1/files/forged-token/").status_code, 404)

    def test_track_order(self):
        number = self.create_order().data["order_number"]
        response = self.client.get(f"/api/v1/track/{number.lower()}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "pending")
        self.assertNotIn("customer_phone", response.data)
        self.assertEqual(self.client.get("/api/v1/track/HS-19990101-001/").status_code, 404)

    def test_admin_endpoints_require_staff(self):
        self.assertEqual(self.client.get("/api/v1/admin/orders/").status_code, 403)
        User.objects.create_user(username="stranger", email="s@example.com", password="stranger123")
        self.auth_as("stranger", "stranger123")
        self.assertEqual(self.client.get("/api/v1/admin/orders/").status_code, 403)
        self.assertEqual(self.client.get("/api/v1/admin/stats/").status_code, 403)

    def test_admin_list_filters_and_paginates(self):
        first = self.create_order().data["order_id"]
        self.create_order(customer_phone="0499 999 999")
        Order.objects.filter(pk=first).update(status=OrderStatus.PAID)

        self.auth_as("admin", "admin123")
        response = self.client.get("/api/v1/admin/orders/?status=paid")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], first)

        page = self.client.get("/api/v1/admin/orders/?status=all&limit=1&offset=1")
        self.assertEqual(page.data["count"], 2)
        self.assertEqual(len(page.data["results"]), 1)

    def test_admin_detail_includes_signed_items(self):
        order_id = self.create_order(quantity=1).data["order_id"]
        self.upload(order_id, 0)
        self.auth_as("admin", "admin123")
        response = self.client.get(f"/api/v1/admin/orders/{order_id}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["items"]), 1)
        self.assertTrue(response.data["items"][0]["preview_url"].startswith("https://shop.test/api/v1/files/"))

    @mock.patch("apps.notifications.services.order_dispatched")
    def test_status_updates_stamp_milestones_once(self, dispatched):
        order_id = self.create_order().data["order_id"]
        confirm_payment(order_id)
        self.auth_as("admin", "admin123")
        url = f"/api/v1/admin/orders/{order_id}/status/"

        response = self.client.put(url, {"status": "printing"}, format="json")
        self.assertEqual(response.status_code, 200)
        printed_at = Order.objects.get(pk=order_id).printed_at
        self.assertIsNotNone(printed_at)

        response = self.client.put(url, {"status": "shipped", "tracking_number": "AP123", "carrier": "AusPost"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["tracking_number"], "AP123")
        dispatched.assert_called_once()

        self.client.put(url, {"status": "printing"}, format="json")
        self.client.put(url, {"status": "shipped"}, format="json")
        order = Order.objects.get(pk=order_id)
        self.assertEqual(order.printed_at, printed_at)
        self.assertEqual(order.status, OrderStatus.SHIPPED)
        self.assertEqual(dispatched.call_count, 2)

        entry = AdminLog.objects.filter(action="orders.update_status", target_id=order_id).first()
        self.assertEqual(entry.actor, self.admin)
        self.assertEqual(entry.details["to"], "shipped")

    def test_notification_errors_do_not_fail_payment_or_dispatch(self):
        order_id = self.create_order().data["order_id"]

        with mock.patch("apps.notifications.services.order_paid", side_effect=RuntimeError("template broke")):
            with self.assertLogs("apps.orders.services", level="ERROR"):
                order, applied = confirm_payment(order_id, payment_intent_id="pi_1")
        self.assertTrue(applied)
        self.assertEqual(order.status, OrderStatus.PAID)
        self.assertEqual(Customer.objects.get().total_spent, 4800 + 800)

        self.auth_as("admin", "admin123")
        with mock.patch("apps.notifications.services.order_dispatched", side_effect=RuntimeError("template broke")):
            with self.assertLogs("apps.orders.services", level="ERROR"):
                response = self.client.put(f"/api/v1/admin/orders/{order_id}/status/", {"status": "shipped"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Order.objects.get(pk=order_id).status, OrderStatus.SHIPPED)

    def test_status_update_rules(self):
        order_id = self.create_order().data["order_id"]
        self.auth_as("admin", "admin123")
        url = f"/api/v1/admin/orders/{order_id}/status/"

        self.assertEqual(self.client.put(url, {"status": "paid"}, format="json").status_code, 400)
        self.assertEqual(self.client.put(url, {"status": "pending"}, format="json").status_code, 400)
        self.assertEqual(self.client.put(url, {}, format="json").status_code, 400)

        notes = self.client.patch(url, {"admin_notes": "call before printing"}, format="json")
        self.assertEqual(notes.status_code, 200)
        self.assertEqual(notes.data["status"], "pending")
        self.assertEqual(notes.data["admin_notes"], "call before printing")

        self.assertEqual(self.client.put(url, {"status": "cancelled"}, format="json").status_code, 200)
        self.assertEqual(self.client.put(url, {"status": "printing"}, format="json").status_code, 409)
        self.assertEqual(self.client.put(url, {"status": "archived"}, format="json").status_code, 409)
        self.assertEqual(Order.objects.get(pk=order_id).status, OrderStatus.CANCELLED)

    def test_delete_requires_super_admin_and_removes_photos(self):
        order_id = self.create_order(quantity=1).data["order_id"]
        path = self.upload(order_id, 0).data["path"]
        store = get_photo_store()
        self.assertTrue(store.exists(path))

        self.auth_as("admin", "admin123")
        self.assertEqual(self.client.delete(f"/api/v1/admin/orders/{order_id}/").status_code, 403)

        self.auth_as("super", "super123")
        self.assertEqual(self.client.delete(f"/api/v1/admin/orders/{order_id}/").status_code, 204)
        self.assertFalse(Order.objects.filter(pk=order_id).exists())
        self.assertFalse(store.exists(path))
        self.assertTrue(AdminLog.objects.filter(action="orders.delete", target_id=order_id).exists())

    def test_download_streams_zip_and_skips_missing_files(self):
        order_id = self.create_order(quantity=3).data["order_id"]
        self.upload(order_id, 0, photo("beach.jpg", b"beach"))
        lost = self.upload(order_id, 1, photo("lost.png", b"lost", "image/png")).data["path"]
        self.upload(order_id, 2, photo("dog.webp", b"dog", "image/webp"))
        get_photo_store().storage.delete(lost)

        self.auth_as("owner", "owner123")
        response = self.client.get(f"/api/v1/admin/orders/{order_id}/download/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/zip")

        archive = zipfile.ZipFile(io.BytesIO(b"".join(response.streaming_content)))
        self.assertEqual(archive.namelist(), ["1_beach.jpg", "3_dog.webp"])
        self.assertEqual(archive.read("3_dog.webp"), b"dog")

    def test_download_without_photos_is_not_found(self):
        order_id = self.create_order().data["order_id"]
        self.auth_as("admin", "admin123")
        self.assertEqual(self.client.get(f"/api/v1/admin/orders/{order_id}/download/").status_code, 404)

    @mock.patch("apps.notifications.services.order_paid")
    def test_stats(self, _paid):
        paid_id = self.create_order(quantity=12, shipping_type="pickup", shipping_address=None).data["order_id"]
        self.create_order(customer_phone="0499 000 000")
        confirm_payment(paid_id)

        self.auth_as("admin", "admin123")
        response = self.client.get("/api/v1/admin/stats/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["orders"]["total"], 2)
        self.assertEqual(response.data["orders"]["paid"], 1)
        self.assertEqual(response.data["orders"]["pending"], 1)
        self.assertEqual(response.data["revenue"]["total"], 8400)
        self.assertEqual(response.data["revenue"]["today"], 8400)
        self.assertEqual(response.data["products"], {"personal": 1})
        self.assertEqual(response.data["customers"], 2)
