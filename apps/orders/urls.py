from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.orders.views import (
    AdminOrderViewSet,
    AdminStatsView,
    OrderCreateView,
    OrderPhotoUploadView,
    OrderTrackView,
    PricingQuoteView,
    PricingView,
)

router = DefaultRouter()
router.register("admin/orders", AdminOrderViewSet, basename="admin-order")

urlpatterns = [
    path("pricing/", PricingView.as_view(), name="pricing"),
    path("pricing/quote/", PricingQuoteView.as_view(), name="pricing-quote"),
    path("orders/", OrderCreateView.as_view(), name="order-create"),
    path("orders/<uuid:order_id>/photos/", OrderPhotoUploadView.as_view(), name="order-photo-upload"),
    path("track/<str:order_number>/", OrderTrackView.as_view(), name="order-track"),
    path("admin/stats/", AdminStatsView.as_view(), name="admin-stats"),
]
urlpatterns += router.urls
