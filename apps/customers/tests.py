from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APITestCase

from apps.accounts.models import AdminMembership, StaffRole
from apps.customers.models import Customer, normalize_phone
from apps.customers.services import record_payment, resolve_or_create
from apps.orders.services import create_order

User = get_user_model()


class CustomerResolutionTests(TestCase):
    def test_normalize_phone(self):
        self.assertEqual(normalize_phone("0412 345 678"), "0412345678")
        self.assertEqual(normalize_phone("+61 (412) 345-678"), "+61412345678")
        self.assertEqual(normalize_phone("n/a"), "")

    def test_same_phone_resolves_to_one_customer_with_fresh_snapshot(self):
        first = resolve_or_create(phone="0412 345 678", name="Jess", email="old@example.com")
        second = resolve_or_create(
            phone="0412-345-678",
            name="Jessica",
            email="new@example.com",
            address={"line1": "1 Lachlan St", "city": "Forbes", "state": "NSW", "postcode": "2871"},
        )

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(second.name, "Jessica")
        self.assertEqual(second.email, "new@example.com")
        self.assertEqual(second.default_city, "Forbes")
        self.assertEqual(second.order_count, 0)
        self.assertEqual(second.total_spent, 0)

    def test_phone_without_digits_is_rejected(self):
        with self.assertRaises(ValueError):
            resolve_or_create(phone="unknown", name="Nobody")

    def test_record_payment_increments(self):
        customer = resolve_or_create(phone="0400000000", name="Sam")
        record_payment(customer.pk, 4800)
        record_payment(customer.pk, 700)
        customer.refresh_from_db()
        self.assertEqual(customer.order_count, 2)
        self.assertEqual(customer.total_spent, 5500)


class CustomerApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="admin123")
        AdminMembership.objects.create(user=self.admin, role=StaffRole.ADMIN)
        self.order = create_order(
            customer_name="Jess Carter",
            customer_phone="0412 345 678",
            customer_email="jess@example.com",
            product_type="personal",
            quantity=6,
            shipping_type="pickup",
        )

    def auth_as(self, username, password):
        response = self.client.post("/api/v1/auth/token/", {"username": username, "password": password}, format="json")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_lookup_by_email_or_phone(self):
        by_email = self.client.post("/api/v1/customers/lookup/", {"email": "JESS@example.com"}, format="json")
        self.assertEqual(by_email.status_code, 200)
        self.assertEqual(by_email.data["customer"]["name"], "Jess Carter")
        self.assertEqual(by_email.data["orders"][0]["order_number"], self.order.order_number)

        by_phone = self.client.post("/api/v1/customers/lookup/", {"phone": "0412-345-678"}, format="json")
        self.assertEqual(by_phone.status_code, 200)

        self.assertEqual(self.client.post("/api/v1/customers/lookup/", {}, format="json").status_code, 400)
        missing = self.client.post("/api/v1/customers/lookup/", {"phone": "0999"}, format="json")
        self.assertEqual(missing.status_code, 404)

    def test_admin_list_search_and_detail(self):
        self.assertEqual(self.client.get("/api/v1/admin/customers/").status_code, 403)

        self.auth_as("admin", "admin123")
        listed = self.client.get("/api/v1/admin/customers/?q=jess")
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(listed.data["count"], 1)

        by_phone = self.client.get("/api/v1/admin/customers/?q=345 678")
        self.assertEqual(by_phone.data["count"], 1)

        detail = self.client.get(f"/api/v1/admin/customers/{self.order.customer_id}/")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual([order["id"] for order in detail.data["orders"]], [str(self.order.id)])
