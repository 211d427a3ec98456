from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.accounts.models import AdminMembership, StaffRole
from apps.audit.models import AdminLog
from apps.promos.models import PromoCode
from apps.promos.services import PromoRejected, PromoRejection, compute_discount, validate_promo

User = get_user_model()


class PromoValidationTests(TestCase):
    def reason(self, code, subtotal, **kwargs):
        with self.assertRaises(PromoRejected) as ctx:
            validate_promo(code, subtotal, **kwargs)
        return ctx.exception.reason

    def test_percentage_discount_is_floored(self):
        promo = PromoCode.objects.create(code="TEN", discount_type="percentage", discount_value=10)
        self.assertEqual(validate_promo("ten", 8400).discount, 840)
        self.assertEqual(compute_discount(promo, 999), 99)

    def test_fixed_discount_is_not_clamped(self):
        PromoCode.objects.create(code="BIG", discount_type="fixed", discount_value=9000)
        self.assertEqual(validate_promo("BIG", 1000).discount, 9000)

    def test_unknown_and_inactive_codes_are_not_found(self):
        PromoCode.objects.create(code="OFF", discount_type="fixed", discount_value=100, is_active=False)
        self.assertEqual(self.reason("NOPE", 1000), PromoRejection.NOT_FOUND)
        self.assertEqual(self.reason("OFF", 1000), PromoRejection.NOT_FOUND)

    def test_first_failing_rule_wins(self):
        now = timezone.now()
        PromoCode.objects.create(
            code="OLD",
            discount_type="fixed",
            discount_value=100,
            min_order_amount=5000,
            expires_at=now - timedelta(days=1),
        )
        self.assertEqual(self.reason("OLD", 1000), PromoRejection.EXPIRED)

        PromoCode.objects.create(
            code="SOON",
            discount_type="fixed",
            discount_value=100,
            max_uses=1,
            uses_count=1,
            starts_at=now + timedelta(days=1),
        )
        self.assertEqual(self.reason("SOON", 1000), PromoRejection.NOT_YET_ACTIVE)

        PromoCode.objects.create(
            code="USED", discount_type="fixed", discount_value=100, max_uses=2, uses_count=2, min_order_amount=5000
        )
        self.assertEqual(self.reason("USED", 1000), PromoRejection.LIMIT_REACHED)

        PromoCode.objects.create(code="MIN", discount_type="fixed", discount_value=100, min_order_amount=5000)
        self.assertEqual(self.reason("MIN", 4999), PromoRejection.BELOW_MINIMUM)
        self.assertEqual(validate_promo("MIN", 5000).discount, 100)

    def test_unlimited_codes(self):
        PromoCode.objects.create(code="FOREVER", discount_type="fixed", discount_value=100, max_uses=None, uses_count=500)
        self.assertEqual(validate_promo("FOREVER", 100).discount, 100)


class PromoApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="admin123")
        AdminMembership.objects.create(user=self.admin, role=StaffRole.ADMIN)
        self.moderator = User.objects.create_user(username="mod", email="mod@heartsnaps.test", password="mod123")
        AdminMembership.objects.create(user=self.moderator, role=StaffRole.MODERATOR)

    def auth_as(self, username, password):
        response = self.client.post("/api/v1/auth/token/", {"username": username, "password": password}, format="json")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_public_validate(self):
        PromoCode.objects.create(code="TEN", discount_type="percentage", discount_value=10, description="Ten off")
        response = self.client.post("/api/v1/promos/validate/", {"code": "ten", "subtotal": 8400}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["valid"])
        self.assertEqual(response.data["discount"], 840)

        missing = self.client.post("/api/v1/promos/validate/", {"code": "nope"}, format="json")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.data["code"], "NOT_FOUND")

        PromoCode.objects.create(code="MIN", discount_type="fixed", discount_value=100, min_order_amount=5000)
        below = self.client.post("/api/v1/promos/validate/", {"code": "MIN", "subtotal": 100}, format="json")
        self.assertEqual(below.status_code, 400)
        self.assertEqual(below.data["code"], "BELOW_MINIMUM")

    def test_admin_crud_and_deactivate(self):
        self.auth_as("admin", "admin123")
        created = self.client.post(
            "/api/v1/admin/promo-codes/",
            {"code": "summer10", "discount_type": "percentage", "discount_value": 10, "max_uses": 50},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["code"], "SUMMER10")
        self.assertEqual(created.data["created_by"], self.admin.id)

        duplicate = self.client.post(
            "/api/v1/admin/promo-codes/",
            {"code": "SUMMER10", "discount_type": "fixed", "discount_value": 100},
            format="json",
        )
        self.assertEqual(duplicate.status_code, 400)

        too_much = self.client.post(
            "/api/v1/admin/promo-codes/",
            {"code": "HALFPLUS", "discount_type": "percentage", "discount_value": 150},
            format="json",
        )
        self.assertEqual(too_much.status_code, 400)

        promo_id = created.data["id"]
        updated = self.client.patch(f"/api/v1/admin/promo-codes/{promo_id}/", {"max_uses": 75}, format="json")
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.data["max_uses"], 75)

        self.assertEqual(self.client.delete(f"/api/v1/admin/promo-codes/{promo_id}/").status_code, 204)
        promo = PromoCode.objects.get(pk=promo_id)
        self.assertFalse(promo.is_active)

        active = self.client.get("/api/v1/admin/promo-codes/?active=true")
        self.assertEqual(active.data, [])

        actions = set(AdminLog.objects.filter(target_id=promo_id).values_list("action", flat=True))
        self.assertEqual(actions, {"promos.create", "promos.update", "promos.deactivate"})

    def test_moderator_cannot_manage_codes(self):
        self.auth_as("mod", "mod123")
        self.assertEqual(self.client.get("/api/v1/admin/promo-codes/").status_code, 403)
