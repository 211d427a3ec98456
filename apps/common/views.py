import mimetypes

from django.conf import settings
from django.http import FileResponse, Http404
from rest_framework import generics
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.common.storage import get_photo_store


class PublicConfigView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response(
            {
                "stripe_publishable_key": settings.STRIPE_PUBLISHABLE_KEY,
                "currency": settings.CURRENCY,
                "shipping_fee": settings.SHIPPING_FEE,
                "free_pickup_location": settings.FREE_PICKUP_LOCATION,
            }
        )


def signed_file(request, token):
    store = get_photo_store()
    key = store.resolve_token(token)
    if key is None or not store.exists(key):
        raise Http404("File not found")
    content_type, _ = mimetypes.guess_type(key)
    return FileResponse(store.open(key), content_type=content_type or "application/octet-stream")
