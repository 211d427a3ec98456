from rest_framework import serializers

from apps.common.storage import get_gallery_store
from apps.common.validators import validate_image_upload
from apps.gallery.models import GalleryItem


class GalleryItemSerializer(serializers.ModelSerializer):
    image_url = serializers.SerializerMethodField()

    class Meta:
        model = GalleryItem
        fields = ["id", "image_url", "caption", "category", "is_featured", "display_order", "is_active", "created_at"]
        read_only_fields = ["id", "image_url", "created_at"]

    def get_image_url(self, obj):
        return get_gallery_store().public_url(obj.image_path)


class GalleryUploadSerializer(serializers.ModelSerializer):
    file = serializers.FileField(write_only=True, validators=[validate_image_upload])

    class Meta:
        model = GalleryItem
        fields = ["file", "caption", "category", "is_featured", "display_order"]
