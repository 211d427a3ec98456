import os
import tempfile

os.environ.setdefault("DJANGO_SECRET_KEY", "test-only-secret-key")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import STORAGES  # noqa: E402

SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
SECURE_HSTS_SECONDS = 0

TEST_DB_DIR = tempfile.mkdtemp(prefix="heartsnaps-test-db-")

# File-backed so threads share it. IMMEDIATE takes the write lock at BEGIN.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(TEST_DB_DIR, "db.sqlite3"),
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        "TEST": {"NAME": os.path.join(TEST_DB_DIR, "test.sqlite3")},
    }
}
if os.environ.get("DATABASE_URL"):
    from config.settings import env  # noqa: E402

    DATABASES = {"default": env.db("DATABASE_URL")}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

MEDIA_ROOT = tempfile.mkdtemp(prefix="heartsnaps-test-media-")
STORAGES = {
    **STORAGES,
    "order_photos": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
        "OPTIONS": {"location": os.path.join(MEDIA_ROOT, "order-photos"), "base_url": None},
    },
    "gallery": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
        "OPTIONS": {"location": os.path.join(MEDIA_ROOT, "gallery"), "base_url": "/media/gallery/"},
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

OWNER_EMAILS = ["owner@heartsnaps.test"]
STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
RESEND_API_KEY = ""
ADMIN_EMAIL = ""
NTFY_TOPIC = ""
SITE_URL = "https://shop.test"
