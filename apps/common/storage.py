import logging
import os
import time

from django.conf import settings
from django.core import signing
from django.core.files.storage import storages
from django.urls import reverse

logger = logging.getLogger(__name__)

SIGNED_FILE_SALT = "order-photos"


def _extension(filename):
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    return ext or "bin"


def order_photo_key(order_id, position, filename):
    return f"orders/{order_id}/{position}_{int(time.time() * 1000)}.{_extension(filename)}"


def gallery_image_key(filename):
    return f"{int(time.time() * 1000)}.{_extension(filename)}"


class PhotoStore:
    """Private photo bucket. Files are only reachable through short-lived signed URLs."""

    def __init__(self, storage, max_age):
        self.storage = storage
        self.max_age = max_age

    def save(self, key, content):
        if self.storage.exists(key):
            raise FileExistsError(key)
        return self.storage.save(key, content)

    def open(self, key):
        return self.storage.open(key, "rb")

    def exists(self, key):
        return self.storage.exists(key)

    def delete_many(self, keys):
        for key in keys:
            try:
                self.storage.delete(key)
            except OSError:
                logger.exception("Failed to delete stored photo %s", key)

    def signed_url(self, key):
        token = signing.dumps(key, salt=SIGNED_FILE_SALT, compress=True)
        return f"{settings.SITE_URL}{reverse('signed-file', kwargs={'token': token})}"

    def resolve_token(self, token):
        """Return the storage key for a valid token, or None when it is forged or expired."""
        try:
            return signing.loads(token, salt=SIGNED_FILE_SALT, max_age=self.max_age)
        except signing.BadSignature:
            return None


class GalleryStore:
    """Public bucket for gallery images."""

    def __init__(self, storage):
        self.storage = storage

    def save(self, key, content):
        return self.storage.save(key, content)

    def delete(self, key):
        self.storage.delete(key)

    def public_url(self, key):
        url = self.storage.url(key)
        if url.startswith("/"):
            return f"{settings.SITE_URL}{url}"
        return url


def get_photo_store():
    return PhotoStore(storages["order_photos"], settings.SIGNED_URL_MAX_AGE)


def get_gallery_store():
    return GalleryStore(storages["gallery"])
