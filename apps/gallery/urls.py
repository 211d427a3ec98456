from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.gallery.views import AdminGalleryViewSet, PublicGalleryView

router = DefaultRouter()
router.register("admin/gallery", AdminGalleryViewSet, basename="admin-gallery")

urlpatterns = [
    path("gallery/", PublicGalleryView.as_view(), name="gallery-list"),
]
urlpatterns += router.urls
