from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command
from django.test import RequestFactory, TestCase, override_settings
from rest_framework.test import APITestCase

from apps.accounts.models import AdminMembership, StaffRole
from apps.accounts.services import authorize, resolve_role
from apps.audit.models import AdminLog

User = get_user_model()


class StaffRoleTests(TestCase):
    def test_hierarchy(self):
        self.assertEqual(
            [role.level for role in (StaffRole.MODERATOR, StaffRole.ADMIN, StaffRole.SUPER_ADMIN, StaffRole.OWNER)],
            [1, 2, 3, 4],
        )
        self.assertTrue(StaffRole.OWNER.satisfies(StaffRole.SUPER_ADMIN))
        self.assertTrue(StaffRole.ADMIN.satisfies("admin"))
        self.assertFalse(StaffRole.MODERATOR.satisfies(StaffRole.ADMIN))
        self.assertFalse(StaffRole.SUPER_ADMIN.satisfies(StaffRole.OWNER))

    def test_owner_allowlist_beats_membership(self):
        owner = User.objects.create_user(username="owner", email="Owner@Heartsnaps.test", password="x")
        AdminMembership.objects.create(user=owner, role=StaffRole.MODERATOR)
        self.assertEqual(resolve_role(owner), StaffRole.OWNER)

    def test_roles_follow_membership(self):
        user = User.objects.create_user(username="ana", email="ana@example.com", password="x")
        self.assertIsNone(resolve_role(user))
        AdminMembership.objects.create(user=user, role=StaffRole.SUPER_ADMIN)
        self.assertEqual(resolve_role(user), StaffRole.SUPER_ADMIN)

        user.is_active = False
        self.assertIsNone(resolve_role(user))

    @override_settings(OWNER_EMAILS=[])
    def test_allowlist_changes_apply_per_request(self):
        user = User.objects.create_user(username="owner", email="owner@heartsnaps.test", password="x")
        request = RequestFactory().get("/")
        request.user = user
        self.assertIsNone(authorize(request, StaffRole.MODERATOR))

        with self.settings(OWNER_EMAILS=["owner@heartsnaps.test"]):
            fresh = RequestFactory().get("/")
            fresh.user = user
            self.assertEqual(authorize(fresh, StaffRole.OWNER).role, StaffRole.OWNER)

    def test_grant_admin_command(self):
        User.objects.create_user(username="ana", email="ana@example.com", password="x")
        out = StringIO()
        call_command("grant_admin", "ANA@example.com", "--role", "moderator", stdout=out)
        self.assertEqual(AdminMembership.objects.get(user__username="ana").role, StaffRole.MODERATOR)

        call_command("grant_admin", "ana@example.com", "--role", "super_admin", stdout=out)
        self.assertEqual(AdminMembership.objects.get(user__username="ana").role, StaffRole.SUPER_ADMIN)

        with self.assertRaises(CommandError):
            call_command("grant_admin", "ghost@example.com", stdout=out)


class AdminApiTests(APITestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username="owner", email="owner@heartsnaps.test", password="owner123")
        self.super_admin = User.objects.create_user(username="super", email="super@heartsnaps.test", password="super123")
        AdminMembership.objects.create(user=self.super_admin, role=StaffRole.SUPER_ADMIN)
        self.admin = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="admin123")
        AdminMembership.objects.create(user=self.admin, role=StaffRole.ADMIN)
        self.moderator = User.objects.create_user(username="mod", email="mod@heartsnaps.test", password="mod123")
        AdminMembership.objects.create(user=self.moderator, role=StaffRole.MODERATOR)
        self.customer = User.objects.create_user(username="jess", email="jess@example.com", password="jess1234")

    def auth(self, username, password):
        return self.client.post("/api/v1/auth/token/", {"username": username, "password": password}, format="json")

    def auth_as(self, username, password):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self.auth(username, password).data['access']}")

    def test_jwt_login_valid_and_invalid(self):
        ok = self.auth("admin", "admin123")
        self.assertEqual(ok.status_code, 200)
        self.assertIn("access", ok.data)
        self.assertEqual(self.auth("admin", "wrong").status_code, 401)

    def test_admin_check(self):
        self.assertEqual(self.client.get("/api/v1/admin/check/").status_code, 403)

        self.auth_as("jess", "jess1234")
        denied = self.client.get("/api/v1/admin/check/")
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.data["code"], "permission_denied")

        self.auth_as("mod", "mod123")
        self.assertEqual(self.client.get("/api/v1/admin/check/").data["role"], "moderator")

        self.auth_as("owner", "owner123")
        self.assertEqual(self.client.get("/api/v1/admin/check/").data["role"], "owner")

    def test_invalid_token_is_forbidden(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        self.assertIn(self.client.get("/api/v1/admin/check/").status_code, (401, 403))

    def test_admin_management_requires_super_admin(self):
        self.auth_as("admin", "admin123")
        self.assertEqual(self.client.get("/api/v1/admin/admins/").status_code, 403)
        self.assertEqual(
            self.client.post("/api/v1/admin/admins/", {"email": "jess@example.com"}, format="json").status_code, 403
        )

    def test_list_includes_allowlisted_owner(self):
        self.auth_as("super", "super123")
        response = self.client.get("/api/v1/admin/admins/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["email"], "owner@heartsnaps.test")
        self.assertEqual(response.data[0]["role"], "owner")
        self.assertEqual(
            {row["email"] for row in response.data[1:]},
            {"super@heartsnaps.test", "admin@heartsnaps.test", "mod@heartsnaps.test"},
        )

    def test_add_and_remove_admin(self):
        self.auth_as("super", "super123")
        added = self.client.post("/api/v1/admin/admins/", {"email": "JESS@example.com", "role": "moderator"}, format="json")
        self.assertEqual(added.status_code, 201)
        self.assertEqual(added.data["role"], "moderator")

        again = self.client.post("/api/v1/admin/admins/", {"email": "jess@example.com"}, format="json")
        self.assertEqual(again.status_code, 409)

        ghost = self.client.post("/api/v1/admin/admins/", {"email": "ghost@example.com"}, format="json")
        self.assertEqual(ghost.status_code, 404)

        removed = self.client.delete(f"/api/v1/admin/admins/{self.customer.pk}/")
        self.assertEqual(removed.status_code, 204)
        self.assertFalse(AdminMembership.objects.filter(user=self.customer).exists())
        self.assertEqual(self.client.delete(f"/api/v1/admin/admins/{self.customer.pk}/").status_code, 404)

        actions = list(AdminLog.objects.filter(target_id=str(self.customer.pk)).values_list("action", flat=True))
        self.assertEqual(sorted(actions), ["admins.add", "admins.remove"])

    def test_owner_cannot_be_added_or_removed(self):
        self.auth_as("owner", "owner123")
        as_role = self.client.post("/api/v1/admin/admins/", {"email": "jess@example.com", "role": "owner"}, format="json")
        self.assertEqual(as_role.status_code, 400)

        owner_email = self.client.post("/api/v1/admin/admins/", {"email": "owner@heartsnaps.test"}, format="json")
        self.assertEqual(owner_email.status_code, 400)

        removal = self.client.delete(f"/api/v1/admin/admins/{self.owner.pk}/")
        self.assertEqual(removal.status_code, 400)

    def test_role_change_applies_on_next_request(self):
        self.auth_as("admin", "admin123")
        self.assertEqual(self.client.get("/api/v1/admin/orders/").status_code, 200)
        AdminMembership.objects.filter(user=self.admin).delete()
        self.assertEqual(self.client.get("/api/v1/admin/orders/").status_code, 403)
