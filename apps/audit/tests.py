from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import RequestFactory, TestCase
from rest_framework.test import APITestCase

from apps.accounts.models import AdminMembership, StaffRole
from apps.audit.models import AdminLog
from apps.audit.services import client_ip, record_audit

User = get_user_model()


class RecordAuditTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="x")

    def test_records_entry_with_client_ip(self):
        request = RequestFactory().post("/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1")
        entry = record_audit(
            actor=self.user,
            action="orders.update_status",
            target_type="order",
            target_id=42,
            details={"to": "shipped"},
            request=request,
        )
        self.assertEqual(entry.target_id, "42")
        self.assertEqual(entry.ip_address, "203.0.113.9")
        self.assertEqual(entry.details, {"to": "shipped"})

    def test_client_ip_falls_back_to_remote_addr(self):
        self.assertEqual(client_ip(RequestFactory().get("/", REMOTE_ADDR="198.51.100.7")), "198.51.100.7")
        self.assertIsNone(client_ip(None))

    def test_junk_forwarded_header_falls_back_to_remote_addr(self):
        request = RequestFactory().get("/", HTTP_X_FORWARDED_FOR="not-an-ip", REMOTE_ADDR="10.0.0.1")
        entry = record_audit(actor=self.user, action="orders.delete", target_type="order", target_id=7, request=request)
        self.assertIsNotNone(entry)
        self.assertEqual(entry.ip_address, "10.0.0.1")
        self.assertEqual(AdminLog.objects.count(), 1)

        request = RequestFactory().get("/", HTTP_X_FORWARDED_FOR="2001:db8::1", REMOTE_ADDR="garbage")
        self.assertEqual(client_ip(request), "2001:db8::1")
        self.assertIsNone(client_ip(RequestFactory().get("/", HTTP_X_FORWARDED_FOR="x", REMOTE_ADDR="y")))

    def test_failed_write_does_not_raise(self):
        with mock.patch.object(AdminLog.objects, "create", side_effect=DatabaseError("down")):
            with self.assertLogs("apps.audit.services", level="ERROR"):
                self.assertIsNone(record_audit(actor=self.user, action="x", target_type="y", target_id=1))


class AdminLogApiTests(APITestCase):
    def setUp(self):
        self.super_admin = User.objects.create_user(username="super", email="super@heartsnaps.test", password="super123")
        AdminMembership.objects.create(user=self.super_admin, role=StaffRole.SUPER_ADMIN)
        self.admin = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="admin123")
        AdminMembership.objects.create(user=self.admin, role=StaffRole.ADMIN)

    def auth_as(self, username, password):
        response = self.client.post("/api/v1/auth/token/", {"username": username, "password": password}, format="json")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_super_admin_reads_latest_entries(self):
        for index in range(105):
            AdminLog.objects.create(actor=self.admin, action="promos.update", target_type="promo_code", target_id=str(index))
        AdminLog.objects.create(actor=self.admin, action="orders.delete", target_type="order", target_id="x")

        self.auth_as("admin", "admin123")
        self.assertEqual(self.client.get("/api/v1/admin/logs/").status_code, 403)

        self.auth_as("super", "super123")
        response = self.client.get("/api/v1/admin/logs/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 100)
        self.assertEqual(response.data[0]["actor_email"], "admin@heartsnaps.test")

        filtered = self.client.get("/api/v1/admin/logs/?action=orders.delete")
        self.assertEqual([row["target_id"] for row in filtered.data], ["x"])
