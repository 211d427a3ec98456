from django.contrib import admin

from apps.gallery.models import GalleryItem


@admin.register(GalleryItem)
class GalleryItemAdmin(admin.ModelAdmin):
    list_display = ("caption", "category", "is_featured", "display_order", "is_active", "created_at")
    list_filter = ("category", "is_featured", "is_active")
