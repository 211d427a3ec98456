from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APITestCase

from apps.accounts.models import AdminMembership, StaffRole
from apps.audit.models import AdminLog
from apps.common.storage import get_gallery_store
from apps.gallery.models import GalleryItem

User = get_user_model()


class GalleryApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", email="admin@heartsnaps.test", password="admin123")
        AdminMembership.objects.create(user=self.admin, role=StaffRole.ADMIN)

    def auth_as(self, username, password):
        response = self.client.post("/api/v1/auth/token/", {"username": username, "password": password}, format="json")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def upload(self, **fields):
        data = {"file": SimpleUploadedFile("wedding.png", b"png-bytes", content_type="image/png")}
        data.update(fields)
        return self.client.post("/api/v1/admin/gallery/", data, format="multipart")

    def test_public_list_shows_active_items_in_order(self):
        GalleryItem.objects.create(image_path="b.jpg", caption="second", display_order=2)
        GalleryItem.objects.create(image_path="a.jpg", caption="first", display_order=1, category="weddings")
        GalleryItem.objects.create(image_path="c.jpg", caption="hidden", is_active=False)

        response = self.client.get("/api/v1/gallery/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["caption"] for row in response.data], ["first", "second"])
        self.assertEqual(response.data[0]["image_url"], "https://shop.test/media/gallery/a.jpg")

        weddings = self.client.get("/api/v1/gallery/?category=weddings")
        self.assertEqual([row["caption"] for row in weddings.data], ["first"])

    def test_admin_upload_and_remove(self):
        self.assertEqual(self.upload().status_code, 403)

        self.auth_as("admin", "admin123")
        created = self.upload(caption="Beach day", category="holidays", display_order=3)
        self.assertEqual(created.status_code, 201)
        item = GalleryItem.objects.get(pk=created.data["id"])
        self.assertTrue(item.image_path.endswith(".png"))
        store = get_gallery_store()
        self.assertTrue(store.storage.exists(item.image_path))

        response = self.client.delete(f"/api/v1/admin/gallery/{item.pk}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(GalleryItem.objects.filter(pk=item.pk).exists())
        self.assertFalse(store.storage.exists(item.image_path))

        actions = list(AdminLog.objects.filter(target_id=str(item.pk)).values_list("action", flat=True))
        self.assertEqual(sorted(actions), ["gallery.add", "gallery.remove"])

    def test_admin_upload_validates_file(self):
        self.auth_as("admin", "admin123")
        bad = SimpleUploadedFile("notes.txt", b"text", content_type="text/plain")
        self.assertEqual(self.upload(file=bad).status_code, 400)
        self.assertEqual(GalleryItem.objects.count(), 0)

    def test_admin_toggle_visibility(self):
        item = GalleryItem.objects.create(image_path="a.jpg", caption="first")
        self.auth_as("admin", "admin123")
        response = self.client.patch(f"/api/v1/admin/gallery/{item.pk}/", {"is_active": False}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/v1/gallery/").data, [])
