import logging

from rest_framework import generics, mixins, status, viewsets
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.exceptions import UpstreamError
from apps.common.permissions import StaffRolePermission
from apps.common.storage import gallery_image_key, get_gallery_store
from apps.gallery.models import GalleryItem
from apps.gallery.serializers import GalleryItemSerializer, GalleryUploadSerializer

logger = logging.getLogger(__name__)


class PublicGalleryView(generics.ListAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = GalleryItemSerializer
    pagination_class = None

    def get_queryset(self):
        queryset = GalleryItem.objects.filter(is_active=True)
        category = self.request.query_params.get("category")
        if category:
            queryset = queryset.filter(category=category)
        return queryset


class AdminGalleryViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = GalleryItem.objects.all()
    serializer_class = GalleryItemSerializer
    permission_classes = [StaffRolePermission]
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    pagination_class = None

    def get_serializer_class(self):
        if self.action == "create":
            return GalleryUploadSerializer
        return GalleryItemSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        upload = data.pop("file")

        store = get_gallery_store()
        try:
            key = store.save(gallery_image_key(upload.name), upload)
        except OSError:
            logger.exception("Failed to store gallery image %s", upload.name)
            raise UpstreamError("Failed to store the image.")

        item = GalleryItem.objects.create(image_path=key, **data)
        record_audit(
            actor=request.user,
            action="gallery.add",
            target_type="gallery_item",
            target_id=item.id,
            details={"caption": item.caption},
            request=request,
        )
        return Response(GalleryItemSerializer(item).data, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        item = serializer.save()
        record_audit(
            actor=self.request.user,
            action="gallery.update",
            target_type="gallery_item",
            target_id=item.id,
            details={"changes": sorted(serializer.validated_data.keys())},
            request=self.request,
        )

    def perform_destroy(self, instance):
        image_path = instance.image_path
        item_id = instance.id
        instance.delete()
        try:
            get_gallery_store().delete(image_path)
        except OSError:
            logger.exception("Failed to delete gallery image %s", image_path)
        record_audit(
            actor=self.request.user,
            action="gallery.remove",
            target_type="gallery_item",
            target_id=item_id,
            details={"image_path": image_path},
            request=self.request,
        )
