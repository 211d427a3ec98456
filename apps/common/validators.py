from django.conf import settings
from rest_framework import serializers


def validate_image_upload(upload):
    if upload.size > settings.MAX_UPLOAD_BYTES:
        raise serializers.ValidationError(
            f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
        )
    if upload.content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise serializers.ValidationError("Invalid file type. Please upload JPG, PNG, WebP or HEIC.")
    return upload
