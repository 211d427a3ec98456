from django.core.files.base import ContentFile
from django.test import TestCase, override_settings
from rest_framework.test import APITestCase

from apps.common.storage import PhotoStore, get_photo_store, order_photo_key


class PublicConfigTests(APITestCase):
    @override_settings(STRIPE_PUBLISHABLE_KEY="pk_test_123")
    def test_config(self):
        response = self.client.get("/api/v1/config/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["stripe_publishable_key"], "pk_test_123")
        self.assertEqual(response.data["shipping_fee"], 800)
        self.assertEqual(response.data["currency"], "aud")


class PhotoStoreTests(TestCase):
    def test_keys(self):
        key = order_photo_key("abc", 3, "IMG_001.HEIC")
        self.assertTrue(key.startswith("orders/abc/3_"))
        self.assertTrue(key.endswith(".heic"))
        self.assertTrue(order_photo_key("abc", 0, "noext").endswith(".bin"))

    def test_save_refuses_to_overwrite(self):
        store = get_photo_store()
        store.save("orders/fixed/0_1.jpg", ContentFile(b"one"))
        with self.assertRaises(FileExistsError):
            store.save("orders/fixed/0_1.jpg", ContentFile(b"two"))
        store.delete_many(["orders/fixed/0_1.jpg"])
        self.assertFalse(store.exists("orders/fixed/0_1.jpg"))

    def test_signed_tokens_expire(self):
        store = get_photo_store()
        token = store.signed_url("orders/x/0_1.jpg").rstrip("/").rsplit("/", 1)[1]
        self.assertEqual(store.resolve_token(token), "orders/x/0_1.jpg")

        expired = PhotoStore(store.storage, max_age=-1)
        self.assertIsNone(expired.resolve_token(token))
